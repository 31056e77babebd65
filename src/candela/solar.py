"""Sunrise and sunset times from the astral library."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Optional

from astral import Observer
from astral.sun import elevation, sunrise, sunset

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolarDay:
    """Solar events for one local calendar date.

    Attributes:
        sunrise: Sunrise instant, or None if the sun does not rise.
        sunset: Sunset instant, or None if the sun does not set.
        polar_day: When there are no events, whether the sun stays up
            (midnight sun) rather than down (polar night).
    """

    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    polar_day: bool = False

    @property
    def has_events(self) -> bool:
        return self.sunrise is not None and self.sunset is not None


SolarCalculator = Callable[[date, float, float, tzinfo], SolarDay]


def sun_times(day: date, latitude: float, longitude: float, tz: tzinfo) -> SolarDay:
    """Compute sunrise and sunset for a date and coordinate.

    Args:
        day: Local calendar date.
        latitude: Degrees north.
        longitude: Degrees east.
        tz: Zone the returned instants are expressed in.

    Returns:
        SolarDay with both events (the sunset is the one following the
        sunrise, possibly on the next date), or with none during polar
        day/night.
    """
    observer = Observer(latitude=latitude, longitude=longitude)
    try:
        rise = sunrise(observer, date=day, tzinfo=tz)
        set_ = sunset(observer, date=day, tzinfo=tz)
        if set_ <= rise:
            # The sunset on this date closes the previous evening
            set_ = sunset(observer, date=day + timedelta(days=1), tzinfo=tz)
    except ValueError:
        # astral raises when the sun never crosses the horizon
        noon = datetime.combine(day, time(12), tzinfo=tz)
        polar_day = elevation(observer, noon) > 0.0
        _LOGGER.debug(
            f"No sunrise/sunset on {day} at ({latitude}, {longitude}), "
            f"polar_day={polar_day}"
        )
        return SolarDay(sunrise=None, sunset=None, polar_day=polar_day)

    return SolarDay(sunrise=rise, sunset=set_)
