"""Phase resolution for the daily color temperature cycle.

This module contains the pure schedule logic. It accepts configuration and
time, and returns the current phase, the active transition window and the
next instant worth waking up for.
"""

import bisect
import logging
import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from .errors import ScheduleError
from .model import Config, Mode, Phase, ScheduleResult, TransitionWindow
from .solar import SolarCalculator, SolarDay, sun_times

_LOGGER = logging.getLogger(__name__)

# Days around the evaluated date whose boundaries are considered. Events of
# the previous day can reach past midnight and events of the next days are
# needed to find the next transition.
_DAY_OFFSETS = (-1, 0, 1, 2)

_SOLAR_CACHE_SIZE = 8

# Solar events closer than this are one event reported for two dates
_SAME_EVENT = timedelta(hours=1)

Boundary = tuple[datetime, Phase]


def parse_time(label: str, value: str) -> time:
    """Parse an HH:MM (24-hour) clock time.

    Raises:
        ScheduleError: If the value is not a valid time.
    """
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (AttributeError, TypeError, ValueError) as err:
        raise ScheduleError(f"Invalid {label} time '{value}': {err}") from err


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise ScheduleError unless the pair is a valid geographic position."""
    try:
        valid = (
            math.isfinite(latitude)
            and math.isfinite(longitude)
            and -90.0 <= latitude <= 90.0
            and -180.0 <= longitude <= 180.0
        )
    except TypeError:
        valid = False
    if not valid:
        raise ScheduleError(
            f"Invalid coordinates: latitude={latitude} longitude={longitude}"
        )


class Schedule:
    """Resolves the day/night phase for a configuration.

    Auto mode uses sunrise and sunset with symmetric post-event windows:
    TRANSITIONING_TO_DAY is [sunrise, sunrise + d), DAY is
    [sunrise + d, sunset), TRANSITIONING_TO_NIGHT is [sunset, sunset + d),
    NIGHT is everything else.

    Fixed mode uses the wakeup and bedtime clock times: TRANSITIONING_TO_DAY
    is [wakeup, wakeup + d), DAY is [wakeup + d, bedtime - d),
    TRANSITIONING_TO_NIGHT is [bedtime - d, bedtime), NIGHT is everything
    else. A bedtime at or before the wakeup time falls on the next day.

    Every interval is half-open, so a boundary instant belongs to the later
    phase. A window that would overrun the following boundary is cut short
    by it.
    """

    def __init__(
        self,
        config: Config,
        tz: Optional[tzinfo] = None,
        solar: Optional[SolarCalculator] = None,
    ) -> None:
        """Initialize the schedule with static configuration.

        Args:
            config: Validated configuration snapshot.
            tz: Local zone. Defaults to the system zone. Naive datetimes
                passed to this schedule are interpreted in this zone.
            solar: Sunrise/sunset calculation (defaults to astral).

        Raises:
            ScheduleError: If wakeup/bedtime are not HH:MM times, if the
                coordinates are invalid in auto mode, or if the transition
                duration is negative.
        """
        self.config = config
        self.tz = tz
        self.solar = solar or sun_times

        self.wakeup_time = parse_time("wakeup", config.schedule.wakeup)
        self.bedtime_time = parse_time("bedtime", config.schedule.bedtime)

        if config.mode == Mode.AUTO:
            validate_coordinates(config.location.latitude, config.location.longitude)

        if config.transition.duration_minutes < 0:
            raise ScheduleError(
                f"Invalid transition duration: {config.transition.duration_minutes}"
            )
        self.duration = config.transition.duration

        self._solar_cache: dict[date, SolarDay] = {}

    def phase_at(self, now: datetime) -> Phase:
        return self.resolve(now).phase

    def target_temperature_at(self, now: datetime) -> int:
        return self.resolve(now).target_temperature

    def transition_window_at(self, now: datetime) -> Optional[TransitionWindow]:
        """Return the active transition window, or None outside one.

        Always None when the transition duration is zero.
        """
        return self.resolve(now).window

    def next_transition_start_at(self, now: datetime) -> Optional[datetime]:
        """Return when the next transition window opens.

        Only defined in the stable phases (DAY and NIGHT); None while a
        transition is running, since the window's own end is then the next
        event. Used by the driving loop to sleep through stable phases.
        """
        return self.resolve(now).next_transition

    def resolve(self, now: datetime) -> ScheduleResult:
        """Evaluate the schedule at `now`.

        Args:
            now: Current time (aware, or naive in the schedule's zone).

        Returns:
            ScheduleResult with phase, target temperature, active window and
            next transition start.
        """
        local = self._localize(now)

        polar = self._polar_phase(local.date())
        if polar is not None:
            _LOGGER.debug(f"Polar {polar.value} at {local}")
            return ScheduleResult(phase=polar, target_temperature=self._target_for(polar))

        boundaries = self._boundaries(local.date())
        times = [start for start, _ in boundaries]
        index = bisect.bisect_right(times, local) - 1

        if index < 0:
            # Nothing started yet in the considered range
            phase, start = Phase.NIGHT, None
        else:
            start, phase = boundaries[index]

        window = None
        next_transition = None
        if phase.is_transitioning:
            if start is not None and self.duration > timedelta(0):
                window = self._window_for(phase, start)
        else:
            next_transition = next(
                (t for t, p in boundaries[index + 1 :] if p.is_transitioning),
                None,
            )

        _LOGGER.debug(
            f"Resolved {local}: phase={phase.value}, window_start="
            f"{window.start if window else None}, next={next_transition}"
        )
        return ScheduleResult(
            phase=phase,
            target_temperature=self._target_for(phase),
            window=window,
            next_transition=next_transition,
        )

    def _target_for(self, phase: Phase) -> int:
        if phase.is_daytime:
            return self.config.temperature.day
        return self.config.temperature.night

    def _window_for(self, phase: Phase, start: datetime) -> TransitionWindow:
        temperature = self.config.temperature
        if phase == Phase.TRANSITIONING_TO_DAY:
            return TransitionWindow(
                start=start,
                start_temp=temperature.night,
                target_temp=temperature.day,
                duration=self.duration,
            )
        return TransitionWindow(
            start=start,
            start_temp=temperature.day,
            target_temp=temperature.night,
            duration=self.duration,
        )

    def _boundaries(self, today: date) -> list[Boundary]:
        """Phase start instants around `today`, in cycle order.

        Returns:
            Non-decreasing list of (start, phase) covering the previous day
            through two days ahead.
        """
        if self.config.mode == Mode.AUTO:
            boundaries = self._solar_boundaries(today)
        else:
            boundaries = []
            for offset in _DAY_OFFSETS:
                boundaries.extend(self._clock_boundaries(today + timedelta(days=offset)))

        # Cut windows short where they overrun the next boundary
        for i in range(len(boundaries) - 2, -1, -1):
            start, phase = boundaries[i]
            following = boundaries[i + 1][0]
            if start > following:
                boundaries[i] = (following, phase)

        return boundaries

    def _solar_boundaries(self, today: date) -> list[Boundary]:
        """Boundaries from the solar events around `today`, in time order.

        Events are ordered by instant rather than by the date that reported
        them, since a sunset can fall on the following calendar date.
        """
        events: list[Boundary] = []
        for offset in _DAY_OFFSETS:
            solar = self._solar_day(today + timedelta(days=offset))
            if solar.has_events:
                events.append((solar.sunrise, Phase.TRANSITIONING_TO_DAY))
                events.append((solar.sunset, Phase.TRANSITIONING_TO_NIGHT))
        events.sort(key=lambda event: event[0])

        boundaries: list[Boundary] = []
        previous: Optional[Boundary] = None
        for instant, phase in events:
            if (
                previous is not None
                and previous[1] == phase
                and instant - previous[0] < _SAME_EVENT
            ):
                continue
            previous = (instant, phase)
            stable = Phase.DAY if phase == Phase.TRANSITIONING_TO_DAY else Phase.NIGHT
            boundaries.append((instant, phase))
            boundaries.append((instant + self.duration, stable))
        return boundaries

    def _clock_boundaries(self, day: date) -> list[Boundary]:
        wakeup = self._at(day, self.wakeup_time)
        bedtime_day = day if self.bedtime_time > self.wakeup_time else day + timedelta(days=1)
        bedtime = self._at(bedtime_day, self.bedtime_time)
        return [
            (wakeup, Phase.TRANSITIONING_TO_DAY),
            (wakeup + self.duration, Phase.DAY),
            (bedtime - self.duration, Phase.TRANSITIONING_TO_NIGHT),
            (bedtime, Phase.NIGHT),
        ]

    def _polar_phase(self, day: date) -> Optional[Phase]:
        if self.config.mode != Mode.AUTO:
            return None
        solar = self._solar_day(day)
        if solar.has_events:
            return None
        return Phase.DAY if solar.polar_day else Phase.NIGHT

    def _solar_day(self, day: date) -> SolarDay:
        cached = self._solar_cache.get(day)
        if cached is not None:
            return cached

        if len(self._solar_cache) >= _SOLAR_CACHE_SIZE:
            self._solar_cache.clear()

        location = self.config.location
        solar = self.solar(day, location.latitude, location.longitude, self._zone_for(day))
        self._solar_cache[day] = solar
        return solar

    def _localize(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            if self.tz is not None:
                return now.replace(tzinfo=self.tz)
            return now.astimezone()
        return now.astimezone(self.tz)

    def _at(self, day: date, clock: time) -> datetime:
        if self.tz is not None:
            return datetime.combine(day, clock, tzinfo=self.tz)
        # System zone: let the platform apply that day's UTC offset
        return datetime.combine(day, clock).astimezone()

    def _zone_for(self, day: date) -> tzinfo:
        if self.tz is not None:
            return self.tz
        return datetime.combine(day, time(12)).astimezone().tzinfo
