"""Dawn (Fajr) and dusk (Maghrib) boundaries of the ritual day.

The expander only needs a callable ``(civil_date, tz, coords) -> (dawn, dusk)``.
:class:`AstralDayBoundaries` is the default one; it turns astral's solar
depression calculations into prayer times using the twilight angles of a
calculation method.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Optional, Tuple

import pytz
from timezonefinder import TimezoneFinder
from astral import LocationInfo
from astral.sun import dawn, dusk, sunset

from .dates import TzLike, resolve_tz, tz_name
from .errors import DayBoundaryError
from .models import Coordinates

DayBoundaryProvider = Callable[[date, TzLike, Coordinates], Tuple[datetime, datetime]]


# --------------- Calculation methods -----------
@dataclass(frozen=True)
class PrayerMethod:
    name: str
    fajr_angle: float
    maghrib_angle: Optional[float] = None  # None -> Maghrib at sunset


METHODS: Dict[str, PrayerMethod] = {
    "tehran":      PrayerMethod("tehran", 17.7, 4.5),
    "jafari":      PrayerMethod("jafari", 16.0, 4.0),
    "mwl":         PrayerMethod("mwl", 18.0),
    "karachi":     PrayerMethod("karachi", 18.0),
    "isna":        PrayerMethod("isna", 15.0),
    "egypt":       PrayerMethod("egypt", 19.5),
    "umm_al_qura": PrayerMethod("umm_al_qura", 18.5),
}
DEFAULT_METHOD = "tehran"


def get_method(name: Optional[str]) -> PrayerMethod:
    key = (name or DEFAULT_METHOD).strip().lower()
    try:
        return METHODS[key]
    except KeyError:
        raise ValueError(f"unknown calculation method {name!r}; choose from {', '.join(sorted(METHODS))}")


# --------------- Timezone & Dawn/Dusk ----------
def iana_timezone_for(lat: float, lon: float):
    tzname = TimezoneFinder().timezone_at(lng=lon, lat=lat) or "UTC"
    return pytz.timezone(tzname)


def local_dawn_dusk(lat: float, lon: float, day: date, tz: TzLike,
                    method: PrayerMethod) -> Tuple[datetime, datetime]:
    tz = resolve_tz(tz)
    loc = LocationInfo(latitude=lat, longitude=lon, timezone=tz_name(tz))
    try:
        fajr = dawn(loc.observer, date=day, depression=method.fajr_angle, tzinfo=tz)
        if method.maghrib_angle is None:
            maghrib = sunset(loc.observer, date=day, tzinfo=tz)
        else:
            maghrib = dusk(loc.observer, date=day, depression=method.maghrib_angle, tzinfo=tz)
    except ValueError as e:
        # astral raises ValueError when the sun never crosses the angle
        raise DayBoundaryError(f"no dawn/dusk on {day} at ({lat}, {lon}): {e}") from e
    return fajr.replace(microsecond=0), maghrib.replace(microsecond=0)


class AstralDayBoundaries:
    """Default Day-Boundary Provider."""

    def __init__(self, method: Optional[str] = None):
        self.method = get_method(method)

    def __call__(self, day: date, tz: TzLike, coords: Coordinates) -> Tuple[datetime, datetime]:
        return local_dawn_dusk(coords.lat, coords.lon, day, tz, self.method)

    def __repr__(self):
        return f"AstralDayBoundaries({self.method.name!r})"
