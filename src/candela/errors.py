"""Exception definitions for candela."""


class CandelaError(Exception):
    """Base exception for all candela errors."""

    pass


class ConfigError(CandelaError, ValueError):
    """Raised when configuration values are invalid."""

    pass


class ScheduleError(ConfigError):
    """Raised when the schedule cannot be built from the configuration."""

    pass


class ApplyError(CandelaError):
    """Raised when a temperature could not be applied to the display."""

    pass
