"""Configuration loading for candela.

Configuration comes from a YAML file (all keys optional) followed by
CANDELA_* environment variable overrides. Example:

    mode: fixed
    schedule:
      wakeup: "07:00"
      bedtime: "22:30"
    transition:
      duration_minutes: 45
      easing: cubic_bezier(0.25, 0.1, 0.25, 1.0)
    temperature:
      day: 6500
      night: 2700
"""

import json
import logging
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

import yaml

from .easing import is_known_easing
from .errors import ConfigError
from .model import Config, DaemonSettings, Mode

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE_NAME = "candela.yaml"

_DEFAULT_DAEMON = DaemonSettings()


def config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """The user configuration directory ($XDG_CONFIG_HOME or ~/.config)."""
    env = os.environ if environ is None else environ
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path("~/.config").expanduser()


def find_config(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    """Return the first existing configuration file, if any.

    Looks for ./candela.yaml, then <config dir>/candela/config.yaml, then
    <config dir>/candela.yaml.
    """
    base = config_dir(environ)
    candidates = [
        Path(CONFIG_FILE_NAME),
        base / "candela" / "config.yaml",
        base / CONFIG_FILE_NAME,
    ]
    return next((path for path in candidates if path.exists()), None)


_ACCEPTED_TYPES = {float: (int, float), int: int, bool: bool, str: str}


def _check_types(config: Config) -> None:
    """Raise ConfigError if a value has the wrong type or range."""
    sections = {
        "location": config.location,
        "schedule": config.schedule,
        "transition": config.transition,
        "temperature": config.temperature,
        "daemon": config.daemon,
    }
    for section_name, section in sections.items():
        for f in fields(section):
            value = getattr(section, f.name)
            # bool is an int subclass, only accept it for bool fields
            if isinstance(value, bool) and f.type is not bool:
                raise ConfigError(f"{section_name}.{f.name} must not be a boolean")
            if not isinstance(value, _ACCEPTED_TYPES[f.type]):
                raise ConfigError(
                    f"{section_name}.{f.name} has invalid value {value!r}"
                )

    if config.transition.duration_minutes < 0:
        raise ConfigError("transition.duration_minutes must not be negative")
    for name in ("day", "night"):
        value = getattr(config.temperature, name)
        if not 0 < value <= 65535:
            raise ConfigError(f"temperature.{name} must be a positive Kelvin value")


def _normalize(config: Config) -> Config:
    """Replace empty daemon settings with their defaults."""
    daemon = config.daemon
    if daemon.tick_interval_seconds <= 0:
        daemon = replace(daemon, tick_interval_seconds=_DEFAULT_DAEMON.tick_interval_seconds)
    if not daemon.status_file:
        daemon = replace(daemon, status_file=_DEFAULT_DAEMON.status_file)
    if not daemon.state_file:
        daemon = replace(daemon, state_file=_DEFAULT_DAEMON.state_file)
    if daemon.status_update_interval <= 0:
        daemon = replace(daemon, status_update_interval=1)
    return replace(config, daemon=daemon)


def _read_file(path: Path) -> Optional[dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as err:
        _LOGGER.warning(f"Error reading config {path}, using defaults: {err}")
        return None

    if data is None:
        return {}
    if not isinstance(data, dict):
        _LOGGER.warning(f"Config {path} is not a mapping, using defaults")
        return None
    return data


def _clock_strings(data: dict[str, Any]) -> dict[str, Any]:
    """Undo YAML 1.1 base-60 parsing of unquoted clock times.

    PyYAML reads `bedtime: 22:00` as the integer 1320.
    """
    schedule = data.get("schedule")
    if not isinstance(schedule, dict):
        return data

    fixed = dict(schedule)
    for key in ("wakeup", "bedtime"):
        value = fixed.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < 24 * 60:
            fixed[key] = f"{value // 60:02d}:{value % 60:02d}"
    return {**data, "schedule": fixed}


def load_config(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Load the configuration snapshot.

    Args:
        path: YAML file to read. None (or a missing file) uses defaults.
        environ: Environment for CANDELA_* overrides (defaults to os.environ).

    Returns:
        The effective configuration.

    Raises:
        ConfigError: If a value in the file or environment is invalid.
    """
    config = Config()
    if path is not None:
        data = _read_file(Path(path))
        if data:
            try:
                config = Config.from_dict(_clock_strings(data))
            except (TypeError, ValueError) as err:
                raise ConfigError(f"Invalid config {path}: {err}") from err

    config = apply_env(config, os.environ if environ is None else environ)
    _check_types(config)
    config = _normalize(config)

    if not is_known_easing(config.transition.easing):
        _LOGGER.warning(
            f"Unknown easing '{config.transition.easing}', falling back to linear"
        )
    return config


def _env_value(
    environ: Mapping[str, str], name: str, parse: Callable[[str], Any]
) -> Optional[Any]:
    raw = environ.get(name)
    if raw is None:
        return None
    try:
        return parse(raw)
    except ValueError:
        _LOGGER.warning(f"Ignoring {name}={raw!r}: not a valid value")
        return None


def apply_env(config: Config, environ: Mapping[str, str]) -> Config:
    """Apply CANDELA_* environment overrides to a configuration.

    Values that cannot be parsed are ignored.
    """
    mode = environ.get("CANDELA_MODE")
    if mode is not None:
        try:
            config = replace(config, mode=Mode(mode.lower()))
        except ValueError:
            _LOGGER.warning(f"Ignoring CANDELA_MODE={mode!r}: not a valid mode")

    location = config.location
    latitude = _env_value(environ, "CANDELA_LATITUDE", float)
    if latitude is not None:
        location = replace(location, latitude=latitude)
    longitude = _env_value(environ, "CANDELA_LONGITUDE", float)
    if longitude is not None:
        location = replace(location, longitude=longitude)

    temperature = config.temperature
    day = _env_value(environ, "CANDELA_DAY_TEMP", int)
    if day is not None:
        temperature = replace(temperature, day=day)
    night = _env_value(environ, "CANDELA_NIGHT_TEMP", int)
    if night is not None:
        temperature = replace(temperature, night=night)

    transition = config.transition
    duration = _env_value(environ, "CANDELA_TRANSITION_DURATION", int)
    if duration is not None:
        transition = replace(transition, duration_minutes=duration)
    if "CANDELA_EASING" in environ:
        transition = replace(transition, easing=environ["CANDELA_EASING"])

    schedule = config.schedule
    if "CANDELA_WAKEUP" in environ:
        schedule = replace(schedule, wakeup=environ["CANDELA_WAKEUP"])
    if "CANDELA_BEDTIME" in environ:
        schedule = replace(schedule, bedtime=environ["CANDELA_BEDTIME"])

    daemon = config.daemon
    tick = _env_value(environ, "CANDELA_TICK_INTERVAL", int)
    if tick is not None:
        daemon = replace(daemon, tick_interval_seconds=tick)
    if "CANDELA_STATUS_FILE" in environ:
        daemon = replace(daemon, status_file=environ["CANDELA_STATUS_FILE"])
    if "CANDELA_OPTIMIZE_UPDATES" in environ:
        daemon = replace(
            daemon,
            optimize_updates=environ["CANDELA_OPTIMIZE_UPDATES"].lower() != "false",
        )
    interval = _env_value(environ, "CANDELA_STATUS_UPDATE_INTERVAL", int)
    if interval is not None:
        daemon = replace(daemon, status_update_interval=interval)
    if "CANDELA_STATE_FILE" in environ:
        daemon = replace(daemon, state_file=environ["CANDELA_STATE_FILE"])

    return replace(
        config,
        location=location,
        temperature=temperature,
        transition=transition,
        schedule=schedule,
        daemon=daemon,
    )


def dump_config(config: Config, as_json: bool = False) -> str:
    """Render a configuration as YAML (or JSON)."""
    data = config.to_dict()
    if as_json:
        return json.dumps(data)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
