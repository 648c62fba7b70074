"""Loading of the rule dataset and the month anchor file."""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .dates import norm_month
from .errors import AnchorError, DatasetError
from .models import MonthAnchor, RuleSet

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_json(path: PathLike) -> Any:
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DatasetError(f"{p} not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetError(f"cannot read {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise DatasetError(f"{p} is not valid JSON: {e}") from e


def load_rule_set(path: PathLike) -> RuleSet:
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise DatasetError(f"{path}: expected an object with 'meta' and 'items'")
    rules = RuleSet.from_dict(raw)
    logger.info("loaded %d rules for %s from %s", len(rules.items), ", ".join(rules.months()) or "no months", path)
    return rules


def anchors_from_mapping(raw: Mapping[str, Any]) -> Dict[str, MonthAnchor]:
    """``{"Ramadan": {"startDateISO": "2024-03-11", "length": 30}}`` -> anchors by normalised month."""
    out: Dict[str, MonthAnchor] = {}
    for month, cfg in raw.items():
        if not cfg:
            continue  # month listed but not configured yet
        if not isinstance(cfg, Mapping):
            raise AnchorError(f"anchor for {month!r} must be an object")
        if not (cfg.get("startDateISO") or cfg.get("start_date")):
            continue
        out[norm_month(month)] = MonthAnchor.from_dict(cfg)
    return out


def load_month_anchors(path: PathLike) -> Dict[str, MonthAnchor]:
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise DatasetError(f"{path}: expected an object keyed by month name")
    return anchors_from_mapping(raw)


def parse_month_spec(spec: str) -> Dict[str, MonthAnchor]:
    """Parse ``"Ramadan:2024-03-11:30"`` (length optional, defaults to 30)."""
    parts = [p.strip() for p in (spec or "").split(":")]
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        raise AnchorError(f"month spec must look like 'Ramadan:2024-03-11[:30]', got {spec!r}")
    length = parts[2] if len(parts) == 3 and parts[2] else 30
    return {norm_month(parts[0]): MonthAnchor.from_iso(parts[1], length)}


def parse_month_specs(specs: List[str]) -> Dict[str, MonthAnchor]:
    out: Dict[str, MonthAnchor] = {}
    for s in specs or ():
        out.update(parse_month_spec(s))
    return out
