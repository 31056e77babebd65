"""Data models for the candela library.

This module defines the core data structures used throughout the library.
Configuration and state classes are frozen (immutable) to support functional
updates.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union


class Mode(Enum):
    """How day and night are determined."""

    AUTO = "auto"  # Computed sunrise/sunset for the configured location
    FIXED = "fixed"  # User-specified wakeup/bedtime clock times


class Phase(Enum):
    """Position in the daily cycle.

    Cycle order: DAY -> TRANSITIONING_TO_NIGHT -> NIGHT -> TRANSITIONING_TO_DAY.
    """

    DAY = "day"
    TRANSITIONING_TO_NIGHT = "transitioning_to_night"
    NIGHT = "night"
    TRANSITIONING_TO_DAY = "transitioning_to_day"

    @property
    def is_transitioning(self) -> bool:
        return self in (Phase.TRANSITIONING_TO_NIGHT, Phase.TRANSITIONING_TO_DAY)

    @property
    def is_daytime(self) -> bool:
        """True for the phases that target the day temperature."""
        return self in (Phase.DAY, Phase.TRANSITIONING_TO_DAY)


@dataclass(frozen=True)
class Location:
    """Geographic position used in auto mode."""

    latitude: float = 0.0
    longitude: float = 0.0


@dataclass(frozen=True)
class ScheduleTimes:
    """Clock times used in fixed mode (HH:MM, 24-hour)."""

    wakeup: str = "07:00"
    bedtime: str = "22:00"


@dataclass(frozen=True)
class TransitionSettings:
    """How temperature changes are spread over time.

    Attributes:
        duration_minutes: Length of a transition window. Zero applies
            temperature changes instantly.
        easing: Curve name (e.g. "smooth") or a
            "cubic_bezier(x1,y1,x2,y2)" descriptor.
    """

    duration_minutes: int = 60
    easing: str = "smooth"

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60


@dataclass(frozen=True)
class Temperatures:
    """Target color temperatures in Kelvin."""

    day: int = 6500
    night: int = 1500


@dataclass(frozen=True)
class DaemonSettings:
    """Settings for the driving loop."""

    tick_interval_seconds: int = 5
    status_file: str = "/tmp/candela.status"
    optimize_updates: bool = True
    status_update_interval: int = 1
    state_file: str = "~/.cache/candela/state.json"


@dataclass(frozen=True)
class Config:
    """Configuration snapshot for one run of the daemon.

    Attributes:
        mode: AUTO (sunrise/sunset) or FIXED (wakeup/bedtime).
        location: Coordinates for auto mode.
        schedule: Clock times for fixed mode.
        transition: Transition duration and easing curve.
        temperature: Day and night temperatures.
        daemon: Loop, status file and state file settings.
    """

    mode: Mode = Mode.AUTO
    location: Location = field(default_factory=Location)
    schedule: ScheduleTimes = field(default_factory=ScheduleTimes)
    transition: TransitionSettings = field(default_factory=TransitionSettings)
    temperature: Temperatures = field(default_factory=Temperatures)
    daemon: DaemonSettings = field(default_factory=DaemonSettings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (YAML/JSON friendly)."""
        data = asdict(self)
        data["mode"] = self.mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create from a dictionary. Missing keys keep their defaults.

        Raises:
            TypeError: If a section is not a mapping or has unknown keys.
            ValueError: If the mode is not a known mode.
        """
        mode = data.get("mode", Mode.AUTO.value)
        return cls(
            mode=Mode(str(mode).lower()),
            location=Location(**(data.get("location") or {})),
            schedule=ScheduleTimes(**(data.get("schedule") or {})),
            transition=TransitionSettings(**(data.get("transition") or {})),
            temperature=Temperatures(**(data.get("temperature") or {})),
            daemon=DaemonSettings(**(data.get("daemon") or {})),
        )


@dataclass(frozen=True)
class TransitionWindow:
    """An active interpolation interval reported by the schedule.

    Attributes:
        start: When the window opened.
        start_temp: Temperature at the start of the window.
        target_temp: Temperature at the end of the window.
        duration: Configured transition length.
    """

    start: datetime
    start_temp: int
    target_temp: int
    duration: timedelta

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    def elapsed_at(self, now: datetime) -> timedelta:
        """Time spent in the window at `now`, never negative."""
        return max(now - self.start, timedelta(0))


@dataclass(frozen=True)
class ScheduleResult:
    """Result of one schedule evaluation.

    Attributes:
        phase: Current phase of the daily cycle.
        target_temperature: Day or night temperature for that phase.
        window: Active transition window, if any.
        next_transition: Start of the next transition window when the
            phase is stable (DAY or NIGHT).
    """

    phase: Phase
    target_temperature: int
    window: Optional[TransitionWindow] = None
    next_transition: Optional[datetime] = None


@dataclass(frozen=True)
class TransitionRecord:
    """Persisted snapshot of an in-flight transition.

    Attributes:
        transition_start_temp: Temperature the transition started from.
        transition_start_timestamp: Unix seconds when it started.
        elapsed_seconds: Seconds spent in the transition when saved.
        target_temp: Temperature the transition is heading to.
    """

    transition_start_temp: int
    transition_start_timestamp: int
    elapsed_seconds: int
    target_temp: int


@dataclass(frozen=True)
class Idle:
    """Engine holds a steady temperature.

    Attributes:
        temperature: The current (and target) temperature.
        since: Unix seconds of the last transition start.
    """

    temperature: int
    since: float


@dataclass(frozen=True)
class InTransition:
    """Engine is interpolating between two temperatures.

    Attributes:
        start_temp: Temperature at the start of the transition.
        target_temp: Temperature at the end of the transition.
        started_at: Wall-clock unix seconds when the transition started.
        phase_start: Monotonic clock reading for the same instant
            (process-local, never persisted).
        current: Most recently computed temperature.
    """

    start_temp: int
    target_temp: int
    started_at: float
    phase_start: float
    current: int


EngineState = Union[Idle, InTransition]
