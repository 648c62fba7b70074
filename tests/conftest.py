from datetime import date, datetime, time

import pytest

from amaal_calendar.dates import resolve_tz
from amaal_calendar.models import Coordinates, MonthAnchor, ObservanceRule

DOHA = Coordinates(25.2854, 51.531)


def fake_day_boundaries(day: date, tz, coords):
    """Fixed 04:30 dawn and 17:45 dusk, local time."""
    tz = resolve_tz(tz)
    return (tz.localize(datetime.combine(day, time(4, 30))),
            tz.localize(datetime.combine(day, time(17, 45))))


def make_rule(rule_id="r1", month="Ramadan", kind="range", period=None, **kw) -> ObservanceRule:
    return ObservanceRule(id=rule_id, lunar_month=month, rule_kind=kind, period=period, **kw)


@pytest.fixture
def provider():
    return fake_day_boundaries


@pytest.fixture
def ramadan_2024():
    return {"Ramadan": MonthAnchor(date(2024, 3, 11), 30)}


@pytest.fixture
def coords():
    return DOHA


@pytest.fixture
def rule():
    return make_rule
