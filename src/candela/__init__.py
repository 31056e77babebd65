"""Candela - Smooth day/night color temperature transitions."""

__version__ = "0.1.0"

from candela.easing import apply_easing
from candela.engine import TransitionEngine
from candela.errors import ApplyError, CandelaError, ConfigError, ScheduleError
from candela.model import (
    Config,
    Idle,
    InTransition,
    Mode,
    Phase,
    ScheduleResult,
    TransitionRecord,
    TransitionWindow,
)
from candela.scheduler import Schedule
from candela.state import calculate_temperature_from_state

__all__ = [
    "ApplyError",
    "CandelaError",
    "Config",
    "ConfigError",
    "Idle",
    "InTransition",
    "Mode",
    "Phase",
    "Schedule",
    "ScheduleError",
    "ScheduleResult",
    "TransitionEngine",
    "TransitionRecord",
    "TransitionWindow",
    "apply_easing",
    "calculate_temperature_from_state",
]
