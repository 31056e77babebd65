"""Applies color temperatures through hyprsunset."""

import logging
import subprocess

from .errors import ApplyError

_LOGGER = logging.getLogger(__name__)


def set_temperature(kelvin: int) -> None:
    """Ask hyprsunset to show `kelvin`.

    Raises:
        ApplyError: If hyprctl is missing or exits with an error.
    """
    args = ["hyprctl", "hyprsunset", "temperature", str(kelvin)]
    try:
        result = subprocess.run(args, capture_output=True, text=True, check=False)
    except OSError as err:
        raise ApplyError(f"{' '.join(args)} could not run: {err}") from err

    if result.returncode != 0:
        raise ApplyError(
            f"{' '.join(args)} failed (exit code {result.returncode}): "
            f"{result.stderr.strip()}"
        )


def is_hyprsunset_running() -> bool:
    try:
        result = subprocess.run(["pidof", "hyprsunset"], capture_output=True, check=False)
    except OSError:
        return False
    return result.returncode == 0


def ensure_hyprsunset_running() -> None:
    """Start hyprsunset in the background if it is not running.

    Raises:
        ApplyError: If hyprsunset could not be started.
    """
    if is_hyprsunset_running():
        return

    _LOGGER.info("Starting hyprsunset...")
    try:
        subprocess.Popen(
            ["hyprsunset"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as err:
        raise ApplyError(f"Could not start hyprsunset: {err}") from err
