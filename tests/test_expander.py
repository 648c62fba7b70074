from datetime import date, timedelta

import pytest

from amaal_calendar.expander import (CATEGORY_COLORS, FALLBACK_COLOR, day_bounds, dedup, expand,
                                     title_color)
from amaal_calendar.models import MonthAnchor

TZ = "Asia/Qatar"
GREEN, BLUE, PURPLE, AMBER = "#059669", "#2563eb", "#8b5cf6", "#d97706"


def run(rules, anchors, provider, coords, **kw):
    return expand(rules, anchors, TZ, coords, provider=provider, **kw)


def test_night_fifteen_lands_on_the_eve(rule, ramadan_2024, provider, coords):
    r = rule("n15", kind="specific", period="night", start_day=15, end_day=15)
    (ev,) = run([r], ramadan_2024, provider, coords)
    assert ev.title == "15th Night"
    assert ev.all_day is True
    assert ev.id == "n15_night_15"
    assert ev.start.isoformat() == "2024-03-24T00:00:00+03:00"
    assert ev.end.date() == date(2024, 3, 24)
    assert ev.color == BLUE


def test_night_never_touches_its_own_civil_date(rule, ramadan_2024, provider, coords):
    r = rule(kind="range", period="night", start_day=1, end_day=30)
    events = run([r], ramadan_2024, provider, coords)
    assert len(events) == 30
    for d, ev in enumerate(events, start=1):
        civil = date(2024, 3, 11) + timedelta(days=d - 1)
        assert ev.start.date() == ev.end.date() == civil - timedelta(days=1)


def test_month_all_spans_whole_month(rule, ramadan_2024, provider, coords):
    r = rule("m", kind="month_all", period="day_and_night")
    (ev,) = run([r], ramadan_2024, provider, coords)
    assert ev.id == "m"
    assert ev.title == "Ramadan"
    assert ev.start.isoformat() == "2024-03-11T00:00:00+03:00"
    assert ev.end.isoformat() == "2024-04-10T00:00:00+03:00"
    assert ev.all_day and ev.color == PURPLE


@pytest.mark.parametrize("length", [29, 30])
@pytest.mark.parametrize("kind", ["month_all", "month_any_time"])
def test_month_wide_is_single(rule, provider, coords, length, kind):
    anchors = {"ramadan": MonthAnchor(date(2024, 3, 11), length)}
    events = run([rule(kind=kind, label="Whole month")], anchors, provider, coords)
    assert len(events) == 1
    assert (events[0].end - events[0].start).days == length


def test_weekday_thursdays_only(rule, provider, coords):
    anchors = {"Ramadan": MonthAnchor(date(2024, 3, 10), 30)}  # day 1 is a Sunday
    r = rule("thu", kind="weekday", weekdays=("THU",))
    events = run([r], anchors, provider, coords)
    assert len(events) in (4, 5)
    assert [e.title for e in events] == ["5th Day", "12th Day", "19th Day", "26th Day"]
    assert all(e.start.weekday() == 3 for e in events)
    assert all(not e.all_day and e.color == GREEN for e in events)
    assert events[0].id == "thu_d5"
    assert events[0].start.isoformat() == "2024-03-14T04:30:00+03:00"
    assert events[0].end.isoformat() == "2024-03-14T17:45:00+03:00"


def test_weekday_multi_and_unknown_codes(rule, ramadan_2024, provider, coords):
    r = rule(kind="weekday_multi", weekdays=("MON", "FRI", "XYZ"))
    events = run([r], ramadan_2024, provider, coords)
    assert {e.start.strftime("%a") for e in events} == {"Mon", "Fri"}
    assert len(events) == 9  # 5 Mondays + 4 Fridays


def test_day_period_uses_dawn_and_dusk(rule, ramadan_2024, provider, coords):
    r = rule("d", kind="range", period="day", start_day=1, end_day=3, label="Fast")
    events = run([r], ramadan_2024, provider, coords)
    assert [e.id for e in events] == ["d_day_1", "d_day_2", "d_day_3"]
    assert events[0].start.isoformat() == "2024-03-11T04:30:00+03:00"
    assert events[2].end.isoformat() == "2024-03-13T17:45:00+03:00"
    assert all(e.title == "Fast" and not e.all_day for e in events)


@pytest.mark.parametrize("period", ["day_and_night", None, "dawn"])
def test_other_periods_are_full_civil_days(rule, ramadan_2024, provider, coords, period):
    r = rule("a", kind="range", period=period, start_day=30)
    (ev,) = run([r], ramadan_2024, provider, coords)
    assert ev.id == "a_allday_30"
    assert ev.title == "30th Day"
    assert ev.start.isoformat() == "2024-04-09T00:00:00+03:00"
    assert ev.end.isoformat() == "2024-04-10T00:00:00+03:00"
    assert ev.color == AMBER


def test_clamping(rule, provider, coords):
    anchors = {"Ramadan": MonthAnchor(date(2024, 3, 11), 29)}
    r = rule(kind="range", period="night", start_day=0, end_day=99)
    events = run([r], anchors, provider, coords)
    assert [e.id for e in events] == [f"r1_night_{d}" for d in range(1, 30)]


def test_day_bounds():
    from amaal_calendar.models import ObservanceRule
    r = lambda s, e: ObservanceRule("x", "m", "range", start_day=s, end_day=e)
    assert day_bounds(r(None, 5), 30) is None
    assert day_bounds(r(5, None), 29) == (5, 29)
    assert day_bounds(r(40, 2), 30) == (30, 30)
    assert day_bounds(r(10, 3), 30) == (10, 10)


def test_missing_start_day_skips_rule(rule, ramadan_2024, provider, coords):
    r = rule(kind="unspecified", period="night")
    assert run([r], ramadan_2024, provider, coords) == []


def test_unconfigured_month_is_skipped(rule, ramadan_2024, provider, coords):
    rules = [
        rule("shawwal", month="Shawwal", kind="month_all"),
        rule("ram", kind="specific", period="day", start_day=2, end_day=2),
    ]
    events = run(rules, ramadan_2024, provider, coords)
    assert [e.id for e in events] == ["ram_day_2"]


def test_month_lookup_is_normalised(rule, provider, coords):
    anchors = {" DHUL  Qa’dah": MonthAnchor(date(2024, 5, 9), 29)}
    events = run([rule(month="Dhul Qa'dah", kind="month_all")], anchors, provider, coords)
    assert len(events) == 1


def test_dedup_collapses_identical_triples(rule, ramadan_2024, provider, coords):
    rules = [
        rule("a", kind="range", period="night", start_day=15, end_day=15),
        rule("b", kind="specific", period="night", start_day=15, end_day=15),
        rule("c", kind="specific", period="night", start_day=15, end_day=15, label="Ghusl"),
    ]
    events = run(rules, ramadan_2024, provider, coords)
    assert [e.id for e in events] == ["a_night_15", "c_night_15"]


def test_dedup_keeps_first():
    from amaal_calendar.models import ExpandedEvent
    from datetime import datetime
    t = datetime(2024, 1, 1)
    a = ExpandedEvent("1", "x", t, t, True)
    b = ExpandedEvent("2", "x", t, t, True)
    assert dedup([a, b]) == [a]


def test_determinism(rule, ramadan_2024, provider, coords):
    rules = [
        rule("m", kind="month_any_time"),
        rule("w", kind="weekday", weekdays=("FRI",)),
        rule("n", kind="range", period="night", start_day=19, end_day=23),
    ]
    first = [e.to_dict() for e in run(rules, ramadan_2024, provider, coords)]
    second = [e.to_dict() for e in run(rules, ramadan_2024, provider, coords)]
    assert first == second


def test_inputs_are_not_mutated(rule, ramadan_2024, provider, coords):
    rules = [rule(kind="range", period="day", start_day=1, sections={"a_lines": ["x"]})]
    before = (list(rules), dict(ramadan_2024))
    events = run(rules, ramadan_2024, provider, coords)
    assert (rules, ramadan_2024) == before
    assert events[0].sections is rules[0].sections


def test_description_and_sections_pass_through(rule, ramadan_2024, provider, coords):
    sections = {"context": ["c"], "amaal": [{"level": 1, "text": "x"}]}
    r = rule(kind="specific", period="night", start_day=1, end_day=1, text="body", sections=sections)
    (ev,) = run([r], ramadan_2024, provider, coords)
    assert ev.description == "body"
    assert ev.sections == sections


def test_provider_failure_drops_only_that_day(rule, ramadan_2024, provider, coords):
    from amaal_calendar.errors import DayBoundaryError

    def polar(day, tz, c):
        if day.day == 12:
            raise DayBoundaryError("no dawn")
        return provider(day, tz, c)

    r = rule(kind="range", period="day", start_day=1, end_day=3)
    events = expand([r], ramadan_2024, TZ, coords, provider=polar)
    assert [e.id for e in events] == ["r1_day_1", "r1_day_3"]


def test_title_color_policy(rule, ramadan_2024, provider, coords):
    rules = [
        rule("a", kind="range", period="day_and_night", start_day=3, end_day=3),
        rule("b", kind="weekday", weekdays=("THU",), label="Thursday night Qur'an"),
        rule("c", kind="range", period="day_and_night", start_day=4, end_day=4, label="Sadaqa"),
    ]
    by_id = {e.id: e for e in run(rules, ramadan_2024, provider, coords, color_policy="title")}
    assert by_id["a_allday_3"].color == GREEN  # "3rd Day"
    assert by_id["b_d4"].color == BLUE
    assert by_id["c_allday_4"].color == AMBER


def test_title_color_phrases(rule):
    r = rule()
    assert title_color(r, "Every night", "all_day") == BLUE
    assert title_color(r, "Every day", "night") == GREEN
    assert title_color(r, "Friday morning Quran", "night") == GREEN
    assert title_color(r, "Something", "other") == FALLBACK_COLOR
    assert title_color(r, "Something", "night") == CATEGORY_COLORS["night"]


def test_unknown_color_policy(rule, ramadan_2024, provider, coords):
    with pytest.raises(ValueError):
        run([rule()], ramadan_2024, provider, coords, color_policy="rainbow")


def test_rule_set_accepted(ramadan_2024, provider, coords):
    from amaal_calendar.models import RuleSet
    rs = RuleSet.from_dict({"meta": {}, "items": [
        {"id": "x", "hijri_month": "Ramadan", "rule_kind": "specific", "period": "night", "start_day": 15}]})
    events = run(rs, ramadan_2024, provider, coords)
    assert len(events) == 16  # 15..30, end_day absent


@pytest.mark.parametrize("rule_month,anchor_month", [
    ("Ramaḍān", "Ramadan"),
    ("Sha'ban", "Shaʿbān"),
])
def test_month_lookup_ignores_diacritics(rule, provider, coords, rule_month, anchor_month):
    anchors = {anchor_month: MonthAnchor(date(2024, 3, 11), 30)}
    rules = [rule("m", month=rule_month, kind="month_all"),
             rule("n", month=rule_month, kind="specific", period="night", start_day=15, end_day=15)]
    events = run(rules, anchors, provider, coords)
    assert [e.id for e in events] == ["m", "n_night_15"]
    assert events[0].title == rule_month


def test_category_colors_are_distinct():
    assert len(set(CATEGORY_COLORS.values())) == 4
    assert FALLBACK_COLOR not in CATEGORY_COLORS.values()
