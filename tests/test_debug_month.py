from amaal_calendar.config import DEFAULT_RULES_PATH
from amaal_calendar.scripts.debug_month import debug_month


def test_debug_month_prints_every_day(capsys, provider):
    debug_month("Ramadan:2024-03-11:29", str(DEFAULT_RULES_PATH), "qatar", "tehran", provider=provider)
    out = capsys.readouterr().out
    assert "=== ramadan from 2024-03-11 (29 days)" in out
    assert "day  1  2024-03-11  MON  fajr 04:30  maghrib 17:45" in out
    assert "day 29  2024-04-08" in out
    assert "day 30" not in out
    assert "-> 15th Night  [all day]" in out
    assert "events in total." in out


def test_debug_month_reports_missing_dawn(capsys, provider):
    from amaal_calendar.errors import DayBoundaryError

    def no_dawn(day, tz, coords):
        if day.day == 12:
            raise DayBoundaryError("polar")
        return provider(day, tz, coords)

    debug_month("Ramadan:2024-03-11", str(DEFAULT_RULES_PATH), "qatar", "tehran", provider=no_dawn)
    assert "day  2  2024-03-12  TUE  no dawn/dusk" in capsys.readouterr().out
