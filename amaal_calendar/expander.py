"""Expand observance rules into concrete calendar events.

Each rule is resolved against the anchor of its lunar month: day ``d`` of the
month is the civil date ``anchor.start_date + (d - 1)``. A lunar *night*
precedes its civil date, so night observances are dated one day earlier; a
*day* observance runs from dawn to dusk of its own civil date.
"""
from __future__ import annotations
import logging
import re
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .dates import (TzLike, end_of_day, lunar_day_to_civil, norm_month, ordinal,
                    resolve_tz, start_of_day, weekday_code)
from .daylight import AstralDayBoundaries, DayBoundaryProvider
from .errors import DayBoundaryError
from .models import (MONTH_WIDE_KINDS, PERIOD_DAY, PERIOD_NIGHT, WEEKDAY_KINDS,
                     Coordinates, ExpandedEvent, MonthAnchor, ObservanceRule, RuleSet)

logger = logging.getLogger(__name__)

# ---------------- Colors -----------------------
CAT_MONTH, CAT_DAY, CAT_NIGHT, CAT_ALL_DAY = "month", "day", "night", "all_day"

CATEGORY_COLORS: Dict[str, str] = {
    CAT_MONTH:   "#8b5cf6",
    CAT_DAY:     "#059669",
    CAT_NIGHT:   "#2563eb",
    CAT_ALL_DAY: "#d97706",
}
FALLBACK_COLOR = "#e69b00"

ColorPolicy = Callable[[ObservanceRule, str, str], str]


def rule_kind_color(rule: ObservanceRule, title: str, category: str) -> str:
    return CATEGORY_COLORS.get(category, FALLBACK_COLOR)


_ORD_DAY = re.compile(r"\b\d{1,2}(st|nd|rd|th)\s+day\b", re.I)
_ORD_NIGHT = re.compile(r"\b\d{1,2}(st|nd|rd|th)\s+night\b", re.I)


def title_color(rule: ObservanceRule, title: str, category: str) -> str:
    """Color picked from the wording of the title; rule-kind color otherwise."""
    t = (title or "").lower().strip()
    quran = "quran" in t or "qur'an" in t
    if _ORD_DAY.search(t):
        return CATEGORY_COLORS[CAT_DAY]
    if _ORD_NIGHT.search(t):
        return CATEGORY_COLORS[CAT_NIGHT]
    if "friday" in t and "morning" in t and quran:
        return CATEGORY_COLORS[CAT_DAY]
    if "thursday" in t and "night" in t and quran:
        return CATEGORY_COLORS[CAT_NIGHT]
    if "every day" in t:
        return CATEGORY_COLORS[CAT_DAY]
    if "every night" in t:
        return CATEGORY_COLORS[CAT_NIGHT]
    return rule_kind_color(rule, title, category)


COLOR_POLICIES: Dict[str, ColorPolicy] = {
    "rule_kind": rule_kind_color,
    "title": title_color,
}


def get_color_policy(policy: Union[str, ColorPolicy, None]) -> ColorPolicy:
    if policy is None:
        return rule_kind_color
    if callable(policy):
        return policy
    try:
        return COLOR_POLICIES[policy]
    except KeyError:
        raise ValueError(f"unknown color policy {policy!r}; choose from {', '.join(COLOR_POLICIES)}")


# ---------------- Expansion --------------------
class _Ctx:
    __slots__ = ("tz", "coords", "provider", "color")

    def __init__(self, tz, coords: Coordinates, provider: DayBoundaryProvider, color: ColorPolicy):
        self.tz = tz
        self.coords = coords
        self.provider = provider
        self.color = color


def _event(ctx: _Ctx, rule: ObservanceRule, ev_id: str, title: str,
           start, end, all_day: bool, category: str) -> ExpandedEvent:
    return ExpandedEvent(
        id=ev_id,
        title=title,
        start=start,
        end=end,
        all_day=all_day,
        description=rule.text,
        sections=rule.sections,
        color=ctx.color(rule, title, category),
    )


def _dawn_to_dusk(ctx: _Ctx, rule: ObservanceRule, ev_id: str, title: str,
                  civil: date) -> Optional[ExpandedEvent]:
    try:
        fajr, maghrib = ctx.provider(civil, ctx.tz, ctx.coords)
    except DayBoundaryError as e:
        logger.warning("skipping %s: %s", ev_id, e)
        return None
    return _event(ctx, rule, ev_id, title, fajr, maghrib, False, CAT_DAY)


def _month_wide(ctx: _Ctx, rule: ObservanceRule, anchor: MonthAnchor) -> List[ExpandedEvent]:
    first = lunar_day_to_civil(anchor, 1)
    after_last = lunar_day_to_civil(anchor, anchor.length + 1)
    return [_event(ctx, rule, rule.id, rule.label or rule.lunar_month,
                   start_of_day(first, ctx.tz), start_of_day(after_last, ctx.tz),
                   True, CAT_MONTH)]


def _weekdays(ctx: _Ctx, rule: ObservanceRule, anchor: MonthAnchor) -> List[ExpandedEvent]:
    wanted = set(rule.weekdays)
    out: List[ExpandedEvent] = []
    for d in range(1, anchor.length + 1):
        civil = lunar_day_to_civil(anchor, d)
        if weekday_code(civil) not in wanted:
            continue
        ev = _dawn_to_dusk(ctx, rule, f"{rule.id}_d{d}", rule.label or f"{ordinal(d)} Day", civil)
        if ev is not None:
            out.append(ev)
    return out


def day_bounds(rule: ObservanceRule, length: int) -> Optional[Tuple[int, int]]:
    """Clamped inclusive ``(start, end)`` lunar days of a rule, None when it has no start day."""
    if rule.start_day is None:
        return None
    start = max(1, min(rule.start_day, length))
    end = length if rule.end_day is None else max(start, min(rule.end_day, length))
    return start, end


def _day_range(ctx: _Ctx, rule: ObservanceRule, anchor: MonthAnchor) -> List[ExpandedEvent]:
    bounds = day_bounds(rule, anchor.length)
    if bounds is None:
        logger.debug("rule %s has no start day, skipped", rule.id)
        return []
    out: List[ExpandedEvent] = []
    for d in range(bounds[0], bounds[1] + 1):
        civil = lunar_day_to_civil(anchor, d)
        if rule.period == PERIOD_NIGHT:
            # all-day marker on the eve, kept inside one calendar cell
            eve = civil - timedelta(days=1)
            out.append(_event(ctx, rule, f"{rule.id}_night_{d}", rule.label or f"{ordinal(d)} Night",
                              start_of_day(eve, ctx.tz), end_of_day(eve, ctx.tz), True, CAT_NIGHT))
        elif rule.period == PERIOD_DAY:
            ev = _dawn_to_dusk(ctx, rule, f"{rule.id}_day_{d}", rule.label or f"{ordinal(d)} Day", civil)
            if ev is not None:
                out.append(ev)
        else:
            nxt = civil + timedelta(days=1)
            out.append(_event(ctx, rule, f"{rule.id}_allday_{d}", rule.label or f"{ordinal(d)} Day",
                              start_of_day(civil, ctx.tz), start_of_day(nxt, ctx.tz), True, CAT_ALL_DAY))
    return out


def expand_rule(ctx: _Ctx, rule: ObservanceRule, anchor: MonthAnchor) -> List[ExpandedEvent]:
    if rule.rule_kind in MONTH_WIDE_KINDS:
        return _month_wide(ctx, rule, anchor)
    if rule.rule_kind in WEEKDAY_KINDS:
        return _weekdays(ctx, rule, anchor)
    return _day_range(ctx, rule, anchor)


def dedup(events: Iterable[ExpandedEvent]) -> List[ExpandedEvent]:
    """Drop repeats of ``(title, start, end)``; the first occurrence wins."""
    seen, out = set(), []
    for e in events:
        key = (e.title, e.start.isoformat(), e.end.isoformat())
        if key not in seen:
            seen.add(key)
            out.append(e)
    return out


def expand(
    rules: Union[RuleSet, Iterable[ObservanceRule]],
    anchors: Mapping[str, MonthAnchor],
    timezone: TzLike,
    coords: Union[Coordinates, Tuple[float, float]],
    *,
    provider: Optional[DayBoundaryProvider] = None,
    color_policy: Union[str, ColorPolicy, None] = "rule_kind",
) -> List[ExpandedEvent]:
    """Expand ``rules`` for every lunar month that has an anchor.

    Rules of months without an anchor produce nothing. The result is a new
    list on every call, deduplicated on ``(title, start, end)``.
    """
    if isinstance(rules, RuleSet):
        rules = rules.items
    ctx = _Ctx(resolve_tz(timezone), Coordinates(*coords),
               provider or AstralDayBoundaries(), get_color_policy(color_policy))
    by_month = {norm_month(k): v for k, v in anchors.items()}

    events: List[ExpandedEvent] = []
    for rule in rules:
        anchor = by_month.get(norm_month(rule.lunar_month))
        if anchor is None:
            logger.debug("no anchor for %r, rule %s skipped", rule.lunar_month, rule.id)
            continue
        events.extend(expand_rule(ctx, rule, anchor))
    unique = dedup(events)
    logger.debug("expanded into %d events (%d duplicates dropped)", len(unique), len(events) - len(unique))
    return unique
