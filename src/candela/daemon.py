"""The driving loop for candela.

Each tick asks the schedule for the current phase, feeds the transition
engine, applies the resulting temperature when it changed and writes the
status file. Between ticks the loop sleeps: one tick interval while a
transition runs, until the next transition (at most an hour) otherwise.

Shutdown is cooperative: the caller passes a threading.Event and sets it
(e.g. from a signal handler) to stop the loop. On the way out the engine's
transition is saved so a restart can resume it.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from . import hyprctl, state
from .engine import TransitionEngine
from .errors import ApplyError
from .model import Config, Phase
from .scheduler import Schedule
from .status import PAUSE, RESUME, Status, control_file_for, read_control, write_status

_LOGGER = logging.getLogger(__name__)

MAX_SLEEP = timedelta(hours=1)
PAUSE_POLL_SECONDS = 0.1

Applier = Callable[[int], None]


@dataclass(frozen=True)
class TickResult:
    """Outcome of one loop iteration.

    Attributes:
        phase: Phase reported by the schedule.
        temperature: Temperature the engine holds after the tick.
        target: Temperature the engine is heading to.
        progress: Raw time progress of the running transition.
        applied: Whether the temperature was sent to the display.
        sleep: How long the loop should wait before the next tick.
    """

    phase: Phase
    temperature: int
    target: int
    progress: float
    applied: bool
    sleep: timedelta


def should_set_temperature(
    optimize_updates: bool, last_sent: Optional[int], current: int
) -> bool:
    """Skip sending a temperature the display already shows."""
    if not optimize_updates:
        return True
    return last_sent != current


class Daemon:
    """Owns the transition engine for the lifetime of the process."""

    def __init__(
        self,
        config: Config,
        schedule: Optional[Schedule] = None,
        applier: Optional[Applier] = None,
        *,
        dry_run: bool = False,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the daemon.

        Args:
            config: Configuration snapshot.
            schedule: Phase resolver (built from config if omitted).
            applier: Sends a temperature to the display; raises ApplyError
                on failure. Defaults to hyprctl.
            dry_run: Compute temperatures without applying or writing files.
            now: Source of the current (aware) time.

        Raises:
            ScheduleError: If the schedule cannot be built from config.
        """
        self.config = config
        self.schedule = schedule or Schedule(config)
        self.applier = applier or hyprctl.set_temperature
        self.dry_run = dry_run
        self._now = now or (lambda: datetime.now().astimezone())

        self.engine: Optional[TransitionEngine] = None
        self.paused = False
        self._last_sent: Optional[int] = None
        self._last_phase: Optional[Phase] = None
        self._tick_count = 0

    def initial_temperature(self, now: datetime) -> int:
        """Startup temperature: resumed from saved state or the schedule's target."""
        target = self.schedule.target_temperature_at(now)
        record = state.load(self.config.daemon.state_file)
        return state.initial_temperature(
            record,
            target,
            self.config.transition.duration_seconds,
            self.config.transition.easing,
            now=now.timestamp(),
        )

    def start(self, now: datetime) -> TransitionEngine:
        """Create the engine, seeded from saved state when it is recent."""
        self.engine = TransitionEngine(
            self.config,
            self.initial_temperature(now),
            clock=lambda: self._now().timestamp(),
        )
        _LOGGER.info(
            f"Mode: {self.config.mode.value}, starting at "
            f"{self.engine.current_temperature}K"
        )
        return self.engine

    def tick(self, now: datetime) -> TickResult:
        """Run one iteration of the loop at `now` (an aware datetime)."""
        engine = self.engine or self.start(now)
        result = self.schedule.resolve(now)

        if result.phase != self._last_phase:
            previous = self._last_phase.value if self._last_phase else "none"
            _LOGGER.info(f"Phase: {previous} -> {result.phase.value}")
            self._last_phase = result.phase

        window = result.window
        if window is not None:
            engine.align_with_schedule(
                window.start_temp, window.target_temp, window.elapsed_at(now)
            )
        else:
            engine.update(result.target_temperature)

        temperature = engine.current_temperature
        target = engine.target_temperature
        progress = engine.progress()
        _LOGGER.debug(
            f"Phase: {result.phase.value}, Temp: {temperature}, "
            f"Target: {target}, Progress: {progress:.2f}"
        )

        applied = False
        if not self.dry_run:
            applied = self._apply(temperature)
            self._write_status(
                Status(
                    temp=temperature,
                    phase=result.phase.value,
                    target=target,
                    progress=progress,
                )
            )

        return TickResult(
            phase=result.phase,
            temperature=temperature,
            target=target,
            progress=progress,
            applied=applied,
            sleep=self._sleep_after(result.phase, result.next_transition, now),
        )

    def run(self, stop: threading.Event) -> None:
        """Loop until `stop` is set, then save the transition state."""
        control_file = control_file_for(self.config.daemon.status_file)
        if self.engine is None:
            self.start(self._now())

        while not stop.is_set():
            for command in read_control(control_file):
                if command == PAUSE and not self.paused:
                    _LOGGER.info("Paused")
                elif command == RESUME and self.paused:
                    _LOGGER.info("Resumed")
                self.paused = command == PAUSE

            if self.paused:
                stop.wait(PAUSE_POLL_SECONDS)
                continue

            result = self.tick(self._now())
            self._wait(stop, result.sleep)

        _LOGGER.info("Shutting down")
        self.shutdown()

    def shutdown(self, now: Optional[float] = None) -> None:
        """Persist the engine's transition (skipped in dry run)."""
        if self.engine is None or self.dry_run:
            return

        record = self.engine.export_state(now)
        try:
            state.save(record, self.config.daemon.state_file)
        except OSError as err:
            _LOGGER.error(f"Failed to save state to {self.config.daemon.state_file}: {err}")

    def _apply(self, temperature: int) -> bool:
        if not should_set_temperature(
            self.config.daemon.optimize_updates, self._last_sent, temperature
        ):
            return False

        try:
            self.applier(temperature)
        except ApplyError as err:
            # Not recorded as sent, so the next tick retries
            _LOGGER.error(f"Error setting temperature: {err}")
            return False

        self._last_sent = temperature
        _LOGGER.info(f"Set temperature to {temperature}K")
        return True

    def _write_status(self, status: Status) -> None:
        self._tick_count += 1
        if self._tick_count < self.config.daemon.status_update_interval:
            return

        self._tick_count = 0
        try:
            write_status(self.config.daemon.status_file, status)
        except OSError as err:
            _LOGGER.warning(f"Could not write status file: {err}")

    def _sleep_after(
        self, phase: Phase, next_transition: Optional[datetime], now: datetime
    ) -> timedelta:
        tick = timedelta(seconds=self.config.daemon.tick_interval_seconds)
        engine_busy = self.engine is not None and self.engine.in_transition
        if phase.is_transitioning or engine_busy or next_transition is None:
            return tick
        return min(max(next_transition - now, timedelta(0)), MAX_SLEEP)

    def _wait(self, stop: threading.Event, duration: timedelta) -> None:
        # Wake at least once per tick interval so shutdown stays responsive
        step = self.config.daemon.tick_interval_seconds
        deadline = time.monotonic() + duration.total_seconds()
        while not stop.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            stop.wait(min(remaining, step))
