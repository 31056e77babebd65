"""Status and control files shared between the daemon and the CLI.

The daemon writes its current temperature, phase, target and progress to the
status file as key=value lines. The CLI asks a running daemon to pause or
resume by writing a command to the control file next to it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

_LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

PAUSE = "pause"
RESUME = "resume"


@dataclass(frozen=True)
class Status:
    """Snapshot of the daemon as seen through the status file."""

    temp: int = 0
    phase: str = "unknown"
    target: int = 0
    progress: float = 0.0

    def to_text(self) -> str:
        return (
            f"temp={self.temp}\n"
            f"phase={self.phase}\n"
            f"target={self.target}\n"
            f"progress={self.progress:.2f}\n"
        )

    def to_dict(self) -> dict:
        return {
            "temp": self.temp,
            "phase": self.phase,
            "target": self.target,
            "progress": round(self.progress, 2),
        }


def write_status(path: PathLike, status: Status) -> None:
    """Write the status file.

    Raises:
        OSError: If the file could not be written.
    """
    Path(path).write_text(status.to_text(), encoding="utf-8")


def read_status(path: PathLike) -> Status:
    """Read the status file. Missing files and fields give defaults."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError:
        return Status()

    values: dict = {}
    parsers = {"temp": int, "phase": str, "target": int, "progress": float}
    for line in content.splitlines():
        key, sep, raw = line.partition("=")
        if not sep or key not in parsers:
            continue
        try:
            values[key] = parsers[key](raw.strip())
        except ValueError:
            _LOGGER.debug(f"Ignoring status line {line!r}")
    return Status(**values)


def control_file_for(status_file: PathLike) -> Path:
    """The control file that sits beside a status file."""
    return Path(status_file).with_suffix(".control")


def write_control(path: PathLike, command: str) -> None:
    """Queue a command (pause/resume) for the daemon."""
    if command not in (PAUSE, RESUME):
        raise ValueError(f"Unknown control command: {command}")
    Path(path).write_text(f"{command}\n", encoding="utf-8")


def read_control(path: PathLike) -> list[str]:
    """Consume queued commands, truncating the control file.

    Returns:
        Commands in the order they were written (unknown lines dropped).
    """
    control = Path(path)
    try:
        content = control.read_text(encoding="utf-8")
    except OSError:
        return []

    commands = [line.strip() for line in content.splitlines()]
    commands = [c for c in commands if c in (PAUSE, RESUME)]
    if content:
        try:
            control.write_text("", encoding="utf-8")
        except OSError as err:
            _LOGGER.warning(f"Could not clear control file {control}: {err}")
    return commands
