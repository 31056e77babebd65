"""Tests for configuration loading."""

import json

import pytest
import yaml

from candela.config import apply_env, dump_config, find_config, load_config
from candela.errors import ConfigError
from candela.model import Config, Mode


def write(path, text):
    path.write_text(text)
    return path


def test_defaults_without_file():
    """Test: No file and no environment gives the defaults."""
    config = load_config(None, environ={})

    assert config == Config()
    assert config.mode == Mode.AUTO
    assert config.temperature.day == 6500
    assert config.temperature.night == 1500
    assert config.transition.duration_minutes == 60
    assert config.transition.easing == "smooth"
    assert config.daemon.tick_interval_seconds == 5


def test_partial_file(tmp_path):
    """Test: Keys missing from the file keep their defaults."""
    path = write(
        tmp_path / "candela.yaml",
        'mode: fixed\nschedule:\n  bedtime: "23:15"\ntemperature:\n  night: 2700\n',
    )
    config = load_config(path, environ={})

    assert config.mode == Mode.FIXED
    assert config.schedule.bedtime == "23:15"
    assert config.schedule.wakeup == "07:00"
    assert config.temperature.night == 2700
    assert config.temperature.day == 6500


def test_unquoted_clock_times(tmp_path):
    """Test: Unquoted HH:MM values are read as clock times."""
    path = write(tmp_path / "candela.yaml", "schedule:\n  wakeup: 06:30\n  bedtime: 22:00\n")
    config = load_config(path, environ={})

    assert config.schedule.wakeup == "06:30"
    assert config.schedule.bedtime == "22:00"


@pytest.mark.parametrize("content", ["", "mode: [unclosed\n", "- just\n- a list\n"])
def test_unusable_file_gives_defaults(tmp_path, content):
    """Test: Empty, unparsable or non-mapping files fall back to defaults."""
    path = write(tmp_path / "candela.yaml", content)
    assert load_config(path, environ={}) == Config()


def test_missing_file_gives_defaults(tmp_path):
    """Test: A path that does not exist falls back to defaults."""
    assert load_config(tmp_path / "nope.yaml", environ={}) == Config()


def test_empty_sections(tmp_path):
    """Test: Sections present but empty keep their defaults."""
    path = write(tmp_path / "candela.yaml", "location:\ntransition:\n")
    assert load_config(path, environ={}) == Config()


@pytest.mark.parametrize(
    "content",
    [
        "mode: sideways\n",
        "temperature:\n  day: warm\n",
        "temperature:\n  night: 0\n",
        "temperature:\n  day: 70000\n",
        "transition:\n  duration_minutes: -10\n",
        "transition:\n  duration_minutes: yes\n",
        "transition:\n  colour: blue\n",
        "location: 42\n",
        "daemon:\n  optimize_updates: 1\n",
    ],
)
def test_invalid_values_raise(tmp_path, content):
    """Test: Values of the wrong type or range are config errors."""
    path = write(tmp_path / "candela.yaml", content)
    with pytest.raises(ConfigError):
        load_config(path, environ={})


def test_config_error_is_value_error(tmp_path):
    """Test: ConfigError can be caught as a ValueError."""
    path = write(tmp_path / "candela.yaml", "mode: sideways\n")
    with pytest.raises(ValueError):
        load_config(path, environ={})


def test_normalizes_daemon_settings(tmp_path):
    """Test: Zero tick and status intervals fall back to their defaults."""
    path = write(
        tmp_path / "candela.yaml",
        'daemon:\n  tick_interval_seconds: 0\n  status_update_interval: 0\n  status_file: ""\n',
    )
    config = load_config(path, environ={})

    assert config.daemon.tick_interval_seconds == 5
    assert config.daemon.status_update_interval == 1
    assert config.daemon.status_file == "/tmp/candela.status"


def test_unknown_easing_is_kept(tmp_path, caplog):
    """Test: An unknown easing loads (and later acts as linear) with a warning."""
    path = write(tmp_path / "candela.yaml", "transition:\n  easing: wobbly\n")
    config = load_config(path, environ={})

    assert config.transition.easing == "wobbly"
    assert "wobbly" in caplog.text


def test_environment_overrides(tmp_path):
    """Test: CANDELA_* variables take precedence over the file."""
    path = write(tmp_path / "candela.yaml", "temperature:\n  day: 6000\n")
    environ = {
        "CANDELA_MODE": "FIXED",
        "CANDELA_DAY_TEMP": "5500",
        "CANDELA_NIGHT_TEMP": "2500",
        "CANDELA_LATITUDE": "48.85",
        "CANDELA_LONGITUDE": "2.35",
        "CANDELA_TRANSITION_DURATION": "30",
        "CANDELA_EASING": "ease_out",
        "CANDELA_WAKEUP": "06:45",
        "CANDELA_BEDTIME": "23:00",
        "CANDELA_TICK_INTERVAL": "2",
        "CANDELA_STATUS_FILE": "/run/candela.status",
        "CANDELA_OPTIMIZE_UPDATES": "false",
        "CANDELA_STATUS_UPDATE_INTERVAL": "3",
        "CANDELA_STATE_FILE": "/var/tmp/candela.json",
    }
    config = load_config(path, environ=environ)

    assert config.mode == Mode.FIXED
    assert config.temperature.day == 5500
    assert config.temperature.night == 2500
    assert config.location.latitude == 48.85
    assert config.location.longitude == 2.35
    assert config.transition.duration_minutes == 30
    assert config.transition.easing == "ease_out"
    assert config.schedule.wakeup == "06:45"
    assert config.schedule.bedtime == "23:00"
    assert config.daemon.tick_interval_seconds == 2
    assert config.daemon.status_file == "/run/candela.status"
    assert config.daemon.optimize_updates is False
    assert config.daemon.status_update_interval == 3
    assert config.daemon.state_file == "/var/tmp/candela.json"


def test_unparsable_environment_is_ignored():
    """Test: Malformed numeric or mode overrides are skipped."""
    config = apply_env(
        Config(),
        {"CANDELA_DAY_TEMP": "bright", "CANDELA_LATITUDE": "north", "CANDELA_MODE": "x"},
    )
    assert config == Config()


def test_find_config_order(tmp_path, monkeypatch):
    """Test: The working directory wins over the user config directory."""
    xdg = tmp_path / "xdg"
    (xdg / "candela").mkdir(parents=True)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    environ = {"XDG_CONFIG_HOME": str(xdg)}

    assert find_config(environ) is None

    flat = write(xdg / "candela.yaml", "mode: fixed\n")
    assert find_config(environ) == flat

    nested = write(xdg / "candela" / "config.yaml", "mode: fixed\n")
    assert find_config(environ) == nested

    write(work / "candela.yaml", "mode: fixed\n")
    assert find_config(environ).resolve() == (work / "candela.yaml").resolve()


def test_dump_config_yaml():
    """Test: The YAML dump loads back to the same configuration."""
    config = Config(mode=Mode.FIXED)
    data = yaml.safe_load(dump_config(config))

    assert data["mode"] == "fixed"
    assert Config.from_dict(data) == config


def test_dump_config_json():
    """Test: The JSON dump carries every section."""
    data = json.loads(dump_config(Config(), as_json=True))

    assert set(data) == {"mode", "location", "schedule", "transition", "temperature", "daemon"}
    assert data["temperature"] == {"day": 6500, "night": 1500}
