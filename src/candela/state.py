"""Persisted transition state for resuming after a restart.

The record is a small JSON document with four fields, written once when the
daemon stops and read once when it starts. A missing or unreadable record
simply means there is nothing to resume.
"""

import json
import logging
import os
import time
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Optional, Union

from .easing import MAX_TEMPERATURE, apply_easing, interpolate
from .model import TransitionRecord

_LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

_RECORD_FIELDS = tuple(f.name for f in fields(TransitionRecord))
_TEMPERATURE_FIELDS = ("transition_start_temp", "target_temp")


def expand_path(path: PathLike) -> Path:
    """Resolve a user path, expanding a leading '~'."""
    return Path(path).expanduser()


def _record_from_dict(data: Any) -> TransitionRecord:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")

    values = {}
    for name in _RECORD_FIELDS:
        value = data[name]
        # bool is an int subclass, but never a valid field value here
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"invalid {name}: {value!r}")
        if name in _TEMPERATURE_FIELDS and value > MAX_TEMPERATURE:
            raise ValueError(f"{name} out of range: {value}")
        values[name] = value
    return TransitionRecord(**values)


def load(path: PathLike) -> Optional[TransitionRecord]:
    """Read a persisted record.

    Args:
        path: Record file location ('~' is expanded).

    Returns:
        The record, or None if the file is missing, unreadable or invalid.
    """
    target = expand_path(path)
    try:
        with open(target, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        _LOGGER.debug(f"No saved state at {target}")
        return None
    except (OSError, ValueError) as err:
        _LOGGER.warning(f"Ignoring unreadable state file {target}: {err}")
        return None

    try:
        return _record_from_dict(data)
    except (KeyError, TypeError, ValueError) as err:
        _LOGGER.warning(f"Ignoring invalid state file {target}: {err}")
        return None


def save(record: TransitionRecord, path: PathLike) -> None:
    """Write a record atomically, creating parent directories.

    Uses write-to-temp-then-rename so a crash mid-write never leaves a
    truncated record behind.

    Raises:
        OSError: If the record could not be written.
    """
    target = expand_path(path)
    tmp_path = target.with_suffix(target.suffix + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(asdict(record), f)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(target)
    except BaseException:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise
    _LOGGER.debug(f"Saved state to {target}: {record}")


def clear(path: PathLike) -> None:
    """Remove a persisted record if present."""
    target = expand_path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return
    _LOGGER.debug(f"Removed state file {target}")


def age_seconds(record: TransitionRecord, now: Optional[float] = None) -> int:
    """Seconds since the record was saved, never negative.

    Args:
        record: The persisted record.
        now: Wall-clock unix seconds (defaults to the current time).
    """
    if now is None:
        now = time.time()
    saved_at = record.transition_start_timestamp + record.elapsed_seconds
    return max(0, int(now) - saved_at)


def is_resumable(
    record: TransitionRecord, duration_seconds: int, now: Optional[float] = None
) -> bool:
    """True if the record is younger than twice the transition duration."""
    return age_seconds(record, now) < duration_seconds * 2


def calculate_temperature_from_state(
    record: TransitionRecord, duration_seconds: int, easing: str
) -> int:
    """Temperature the engine held at the record's elapsed time.

    Uses the same interpolation as the transition engine, so resuming
    reproduces the value the engine would have shown.
    """
    if record.elapsed_seconds >= duration_seconds:
        return record.target_temp

    progress = record.elapsed_seconds / duration_seconds
    eased = apply_easing(progress, easing)
    return interpolate(record.transition_start_temp, record.target_temp, eased)


def initial_temperature(
    record: Optional[TransitionRecord],
    fallback: int,
    duration_seconds: int,
    easing: str,
    now: Optional[float] = None,
) -> int:
    """Pick the startup temperature, resuming a recent record when possible.

    Args:
        record: Record loaded at startup, if any.
        fallback: Temperature to use without a usable record.
        duration_seconds: Configured transition duration.
        easing: Configured easing curve.
        now: Wall-clock unix seconds (defaults to the current time).
    """
    if record is None:
        return fallback

    if not is_resumable(record, duration_seconds, now):
        _LOGGER.info(
            f"Saved state too old ({age_seconds(record, now)}s), calculating fresh"
        )
        return fallback

    temperature = calculate_temperature_from_state(record, duration_seconds, easing)
    _LOGGER.info(f"Resuming transition from saved state at {temperature}K")
    return temperature
