"""Command-line interface for candela.

Usage: candela [-c CONFIG] [-v|-q] [--json] [--dry-run] [COMMAND]

Commands:
    daemon          Run the temperature daemon (default)
    now             Print the current temperature
    status          Print temperature, phase, target and progress
    set KELVIN      Apply a temperature now and forget saved state
    pause, resume   Pause or resume a running daemon
    config          Print the effective configuration
"""

import argparse
import json
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from . import __version__, hyprctl, state
from .config import dump_config, find_config, load_config
from .daemon import Daemon
from .errors import CandelaError, ConfigError
from .model import Config
from .status import (
    PAUSE,
    RESUME,
    Status,
    control_file_for,
    read_status,
    write_control,
    write_status,
)

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="candela",
        description="Smooth color temperature transitions for hyprsunset",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", help="Path to the YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Compute temperatures without applying them"
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("daemon", help="Run the temperature daemon")
    commands.add_parser("now", help="Print the current temperature")
    commands.add_parser("status", help="Print the daemon status")
    set_parser = commands.add_parser("set", help="Apply a temperature now")
    set_parser.add_argument("temperature", type=int, help="Temperature in Kelvin")
    commands.add_parser("pause", help="Pause a running daemon")
    commands.add_parser("resume", help="Resume a paused daemon")
    commands.add_parser("config", help="Print the effective configuration")
    return parser


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


def run_daemon(config: Config, dry_run: bool) -> int:
    daemon = Daemon(config, dry_run=dry_run)
    if not dry_run:
        hyprctl.ensure_hyprsunset_running()

    stop = threading.Event()

    def _shutdown_handler(signum, frame):
        _LOGGER.info(f"Received signal {signum}, stopping")
        stop.set()

    signal.signal(signal.SIGINT, _shutdown_handler)
    signal.signal(signal.SIGTERM, _shutdown_handler)

    _LOGGER.info("Starting candela daemon")
    daemon.run(stop)
    return 0


def set_temperature(config: Config, temperature: int, dry_run: bool, quiet: bool) -> int:
    if not quiet:
        print(f"Setting temperature to {temperature}K")
    if dry_run:
        return 0

    hyprctl.set_temperature(temperature)
    state.clear(config.daemon.state_file)
    try:
        write_status(
            config.daemon.status_file,
            Status(temp=temperature, phase="manual", target=temperature, progress=1.0),
        )
    except OSError as err:
        _LOGGER.warning(f"Could not write status file: {err}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    try:
        config = load_config(args.config or find_config())
    except ConfigError as err:
        print(f"Configuration error: {err}", file=sys.stderr)
        return 1

    command = args.command or "daemon"
    status_file = config.daemon.status_file

    try:
        if command == "daemon":
            return run_daemon(config, args.dry_run)

        if command == "now":
            status = read_status(status_file)
            print(json.dumps({"temp": status.temp}) if args.json else f"{status.temp}K")
        elif command == "status":
            status = read_status(status_file)
            if args.json:
                print(json.dumps(status.to_dict()))
            else:
                print(status.to_text(), end="")
        elif command == "set":
            return set_temperature(config, args.temperature, args.dry_run, args.quiet)
        elif command in ("pause", "resume"):
            write_control(control_file_for(status_file), PAUSE if command == "pause" else RESUME)
            if not args.quiet:
                print("Paused" if command == "pause" else "Resumed")
        elif command == "config":
            if args.json:
                print(dump_config(config, as_json=True))
            else:
                print(dump_config(config), end="")
    except (CandelaError, OSError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
