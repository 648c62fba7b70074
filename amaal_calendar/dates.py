"""Civil-date arithmetic for lunar months anchored to a Gregorian start date."""
from __future__ import annotations
import re
import unicodedata
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Union

import pytz

from .errors import TimezoneError
from .models import MonthAnchor

WEEKDAY_CODES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")  # date.weekday() order
END_OF_DAY = time(23, 59, 59, 999000)

_APOSTROPHES = re.compile(r"[‘’ʼʽʾʿ`´]")
_SPACES = re.compile(r"\s+")

TzLike = Union[str, tzinfo]


def norm_month(name: str) -> str:
    """Lookup key for a lunar month name: "  Dhul  Qa’dah " -> "dhul qa'dah", "Ramaḍān" -> "ramadan"."""
    s = _APOSTROPHES.sub("'", (name or "").strip().lower())
    s = "".join(c for c in unicodedata.normalize("NFKD", s) if not unicodedata.combining(c))
    return _SPACES.sub(" ", s)


def resolve_tz(tz: TzLike):
    if isinstance(tz, str):
        try:
            return pytz.timezone(tz)
        except pytz.UnknownTimeZoneError as e:
            raise TimezoneError(f"unknown timezone {tz!r}") from e
    return tz


def tz_name(tz: TzLike) -> str:
    if isinstance(tz, str):
        return tz
    return getattr(tz, "zone", None) or str(tz)


def lunar_day_to_civil(anchor: MonthAnchor, day: int) -> date:
    """Lunar day ``day`` (1-based) falls on ``anchor.start_date + (day - 1)``."""
    return anchor.start_date + timedelta(days=day - 1)


def _localize(tz, naive: datetime) -> datetime:
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def start_of_day(d: date, tz: TzLike) -> datetime:
    return _localize(resolve_tz(tz), datetime.combine(d, time(0, 0)))


def end_of_day(d: date, tz: TzLike) -> datetime:
    return _localize(resolve_tz(tz), datetime.combine(d, END_OF_DAY))


def weekday_code(d: date) -> str:
    return WEEKDAY_CODES[d.weekday()]


def ordinal(n: int) -> str:
    v = n % 100
    if 11 <= v <= 13:
        return f"{n}th"
    return f"{n}" + {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
