from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

from .errors import AnchorError, DatasetError

# ---------------- Vocabulary -------------------
PERIOD_DAY = "day"
PERIOD_NIGHT = "night"
PERIOD_DAY_AND_NIGHT = "day_and_night"

MONTH_WIDE_KINDS = frozenset({"month_all", "month_any_time"})
WEEKDAY_KINDS = frozenset({"weekday", "weekday_multi"})
RANGE_KINDS = frozenset({"specific", "range", "night_general", "unspecified"})
RULE_KINDS = MONTH_WIDE_KINDS | WEEKDAY_KINDS | RANGE_KINDS

VALID_MONTH_LENGTHS = (29, 30)


class Coordinates(NamedTuple):
    lat: float
    lon: float


# ---------------- Rules ------------------------
@dataclass(frozen=True)
class ObservanceRule:
    id: str
    lunar_month: str
    rule_kind: str
    period: Optional[str] = None
    label: Optional[str] = None
    start_day: Optional[int] = None
    end_day: Optional[int] = None
    weekdays: Tuple[str, ...] = ()
    text: str = ""
    sections: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ObservanceRule":
        """Build a rule from one ``items`` entry of the JSON dataset."""
        try:
            rule_id = str(raw["id"])
            month = str(raw["hijri_month"])
        except KeyError as e:
            raise DatasetError(f"rule is missing required key {e}") from e
        return cls(
            id=rule_id,
            lunar_month=month,
            rule_kind=raw.get("rule_kind") or "unspecified",
            period=raw.get("period"),
            label=raw.get("label") or None,
            start_day=_opt_int(raw.get("start_day")),
            end_day=_opt_int(raw.get("end_day")),
            weekdays=tuple(str(w).upper() for w in (raw.get("weekdays") or ())),
            text=raw.get("text") or "",
            sections=raw.get("sections"),
        )


def _opt_int(v: Any) -> Optional[int]:
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise DatasetError(f"expected an integer day number, got {v!r}") from e


@dataclass(frozen=True)
class RuleSet:
    meta: Dict[str, Any] = field(default_factory=dict)
    items: Tuple[ObservanceRule, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RuleSet":
        items = raw.get("items")
        if not isinstance(items, list):
            raise DatasetError("dataset has no 'items' list")
        return cls(meta=dict(raw.get("meta") or {}),
                   items=tuple(ObservanceRule.from_dict(x) for x in items))

    def months(self) -> List[str]:
        seen: List[str] = []
        for r in self.items:
            if r.lunar_month not in seen:
                seen.append(r.lunar_month)
        return seen


# ---------------- Anchors ----------------------
@dataclass(frozen=True)
class MonthAnchor:
    """Civil date of lunar day 1 plus the sighted month length."""
    start_date: date
    length: int = 30

    def __post_init__(self):
        if self.length not in VALID_MONTH_LENGTHS:
            raise AnchorError(f"month length must be 29 or 30, got {self.length!r}")

    @classmethod
    def from_iso(cls, start_date_iso: str, length: int = 30) -> "MonthAnchor":
        try:
            d = date.fromisoformat(str(start_date_iso).strip()[:10])
        except ValueError as e:
            raise AnchorError(f"invalid start date {start_date_iso!r}") from e
        try:
            n = int(length)
        except (TypeError, ValueError) as e:
            raise AnchorError(f"invalid month length {length!r}") from e
        return cls(d, n)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MonthAnchor":
        start = raw.get("startDateISO") or raw.get("start_date")
        if not start:
            raise AnchorError("month anchor needs 'startDateISO'")
        return cls.from_iso(start, raw.get("length", 30))


# ---------------- Output -----------------------
@dataclass(frozen=True)
class ExpandedEvent:
    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    description: str = ""
    sections: Optional[Dict[str, Any]] = None
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "allDay": self.all_day,
            "description": self.description,
            "sections": self.sections,
            "color": self.color,
        }
