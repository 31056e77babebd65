"""The transition engine for candela.

This module owns the temperature currently shown on the display and moves it
toward a target over the configured transition duration, shaped by the
configured easing curve. It has two entry points:

- `update(target)`: only a target is known; the engine detects target
  changes itself and times the transition from its own clock.
- `align_with_schedule(start, target, elapsed)`: the schedule supplies the
  authoritative window, so the result depends only on those inputs and is
  reproducible after a restart.
"""

import logging
import time
from dataclasses import replace
from datetime import timedelta
from typing import Callable, Optional

from .easing import interpolate, resolve_easing
from .model import Config, EngineState, Idle, InTransition, TransitionRecord

_LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


class TransitionEngine:
    """Interpolates the display temperature between phases."""

    def __init__(
        self,
        config: Config,
        initial_temperature: int,
        *,
        clock: Clock = time.time,
        monotonic: Clock = time.monotonic,
    ) -> None:
        """Initialize the engine holding a steady temperature.

        Args:
            config: Configuration snapshot (transition duration and easing).
            initial_temperature: Temperature to start from.
            clock: Wall-clock source in unix seconds.
            monotonic: Monotonic clock source in seconds.
        """
        self.config = config
        self._clock = clock
        self._monotonic = monotonic
        self._ease = resolve_easing(config.transition.easing)
        self._state: EngineState = Idle(temperature=initial_temperature, since=clock())

    @property
    def duration(self) -> timedelta:
        return self.config.transition.duration

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def in_transition(self) -> bool:
        return isinstance(self._state, InTransition)

    @property
    def current_temperature(self) -> int:
        if isinstance(self._state, InTransition):
            return self._state.current
        return self._state.temperature

    @property
    def target_temperature(self) -> int:
        if isinstance(self._state, InTransition):
            return self._state.target_temp
        return self._state.temperature

    @property
    def transition_start_temp(self) -> int:
        if isinstance(self._state, InTransition):
            return self._state.start_temp
        return self._state.temperature

    @property
    def transition_start_timestamp(self) -> int:
        if isinstance(self._state, InTransition):
            return int(self._state.started_at)
        return int(self._state.since)

    def update(self, target: int) -> int:
        """Move toward `target` using the engine's own timing.

        A zero duration applies the target instantly. A target different
        from the one in flight (or any target while idle) starts a new
        transition from the current temperature.

        Args:
            target: Desired temperature.

        Returns:
            The current temperature after the update.
        """
        duration = self.duration.total_seconds()

        if duration <= 0:
            self._state = Idle(temperature=target, since=self._clock())
            return target

        if self.current_temperature == target:
            if self.in_transition:
                _LOGGER.debug(f"Reached {target}K, transition idle")
            self._state = Idle(temperature=target, since=self.transition_start_timestamp)
            return target

        state = self._state
        if not isinstance(state, InTransition) or state.target_temp != target:
            current = self.current_temperature
            _LOGGER.info(f"Starting transition {current}K -> {target}K")
            state = InTransition(
                start_temp=current,
                target_temp=target,
                started_at=self._clock(),
                phase_start=self._monotonic(),
                current=current,
            )

        elapsed = self._monotonic() - state.phase_start
        if elapsed >= duration:
            _LOGGER.info(f"Transition to {target}K complete")
            self._state = Idle(temperature=target, since=state.started_at)
            return target

        eased = self._ease(elapsed / duration)
        self._state = replace(
            state, current=interpolate(state.start_temp, state.target_temp, eased)
        )
        return self._state.current

    def align_with_schedule(
        self, start_temp: int, target_temp: int, elapsed: timedelta
    ) -> int:
        """Set the temperature from an authoritative transition window.

        The internal transition start is backdated by `elapsed`, so later
        `update` calls and `progress` agree with the window.

        Args:
            start_temp: Temperature at the start of the window.
            target_temp: Temperature at the end of the window.
            elapsed: Time since the window started, clamped to
                [0, duration].

        Returns:
            The current temperature after alignment.
        """
        duration = self.duration.total_seconds()
        wall_now = self._clock()

        if duration <= 0:
            self._state = Idle(temperature=target_temp, since=wall_now)
            return target_temp

        clamped = min(max(elapsed.total_seconds(), 0.0), duration)
        started_at = wall_now - clamped

        if clamped >= duration:
            if self.in_transition:
                _LOGGER.info(f"Scheduled transition to {target_temp}K complete")
            self._state = Idle(temperature=target_temp, since=started_at)
            return target_temp

        eased = self._ease(clamped / duration)
        current = interpolate(start_temp, target_temp, eased)
        if not self.in_transition:
            _LOGGER.info(
                f"Joining scheduled transition {start_temp}K -> {target_temp}K "
                f"at {clamped:.0f}s of {duration:.0f}s"
            )
        self._state = InTransition(
            start_temp=start_temp,
            target_temp=target_temp,
            started_at=started_at,
            phase_start=self._monotonic() - clamped,
            current=current,
        )
        return current

    def progress(self) -> float:
        """Raw time progress of the running transition, in [0, 1].

        Independent of easing; 1.0 when idle or when duration is zero.
        """
        state = self._state
        duration = self.duration.total_seconds()
        if not isinstance(state, InTransition) or duration <= 0:
            return 1.0

        elapsed = self._monotonic() - state.phase_start
        return min(1.0, max(0.0, elapsed / duration))

    def export_state(self, now: Optional[float] = None) -> TransitionRecord:
        """Create the record to persist on shutdown.

        Args:
            now: Wall-clock unix seconds (defaults to the engine clock).

        Returns:
            TransitionRecord with elapsed time measured from the transition
            start, never negative.
        """
        if now is None:
            now = self._clock()
        state = self._state
        started_at = state.started_at if isinstance(state, InTransition) else state.since
        return TransitionRecord(
            transition_start_temp=self.transition_start_temp,
            transition_start_timestamp=self.transition_start_timestamp,
            # Measured from the unrounded start, like the interpolation
            elapsed_seconds=max(0, round(now - started_at)),
            target_temp=self.target_temperature,
        )
