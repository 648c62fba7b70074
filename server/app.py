# server/app.py
import logging
from functools import lru_cache
from typing import List, Optional, Tuple

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from amaal_calendar.config import LOCATIONS, Settings, resolve_place
from amaal_calendar.dataset import load_rule_set, parse_month_specs
from amaal_calendar.daylight import AstralDayBoundaries
from amaal_calendar.errors import (AnchorError, DatasetError, GeocodeQueryError,
                                   GeocodeUpstreamError, TimezoneError)
from amaal_calendar.expander import expand
from amaal_calendar.ics import build_ics
from amaal_calendar.location import geocode
from amaal_calendar.models import ExpandedEvent, RuleSet
from amaal_calendar.sections import normalize_sections

settings = Settings.from_env()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO),
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("amaal_calendar.server")

app = FastAPI(title="Amaal Calendar API")

# --------- rule dataset (loaded once, failures leave the calendar empty) ---------
_dataset = {"rules": None, "error": None}


def reload_rules(path=None) -> Optional[RuleSet]:
    _expand_cached.cache_clear()
    try:
        _dataset["rules"] = load_rule_set(path or settings.rules_path)
        _dataset["error"] = None
    except DatasetError as e:
        logger.error("failed to load rule dataset: %s", e)
        _dataset["rules"], _dataset["error"] = None, str(e)
    return _dataset["rules"]


def current_rules() -> Optional[RuleSet]:
    if _dataset["rules"] is None and _dataset["error"] is None:
        reload_rules()
    return _dataset["rules"]


@lru_cache(maxsize=64)
def _expand_cached(anchors: Tuple, tz: str, lat: float, lon: float,
                   method: str, colors: str) -> Tuple[ExpandedEvent, ...]:
    rules = current_rules()
    if rules is None:
        return ()
    return tuple(expand(rules, dict(anchors), tz, (lat, lon),
                        provider=AstralDayBoundaries(method), color_policy=colors))


def _error(status: int, msg: str, **extra):
    return JSONResponse({"ok": False, "error": msg, **extra}, status_code=status)


def _events_for(month: List[str], location: Optional[str], lat: Optional[float], lon: Optional[float],
                tz: Optional[str], method: Optional[str], colors: Optional[str]):
    anchors = parse_month_specs(month)
    tzname, coords = resolve_place(location or settings.location, lat, lon, tz)
    key = tuple(sorted(anchors.items()))
    return tzname, _expand_cached(key, tzname, coords.lat, coords.lon,
                                  method or settings.method, colors or settings.color_policy)


# --------------------- routes ---------------------
@app.get("/", response_class=PlainTextResponse)
def root():
    return "Amaal Calendar API is running. Try /docs for the interactive UI."


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/locations")
def locations():
    return {k: {"name": p.name, "timezone": p.timezone, "coords": p.coords._asdict()}
            for k, p in LOCATIONS.items()}


@app.get("/geocode")
def geocode_route(q: Optional[str] = Query(None, description="Place name, at least 2 characters")):
    try:
        results = geocode(q, user_agent=settings.user_agent)
    except GeocodeQueryError:
        return _error(400, "Missing q")
    except GeocodeUpstreamError:
        return _error(500, "Geocode failed")
    return {"ok": True, "results": [r.to_dict() for r in results]}


_MONTH_HELP = "Lunar month anchor 'Name:YYYY-MM-DD[:29|30]', repeatable"


@app.get("/events")
def events(
    month: List[str] = Query([], description=_MONTH_HELP),
    location: Optional[str] = Query(None, description="Location preset, e.g. 'qatar'"),
    lat: Optional[float] = Query(None, description="Latitude"),
    lon: Optional[float] = Query(None, description="Longitude"),
    tz: Optional[str] = Query(None, description="e.g. 'Asia/Qatar'"),
    method: Optional[str] = Query(None, description="Fajr/Maghrib calculation method"),
    colors: Optional[str] = Query(None, pattern="^(rule_kind|title)$"),
):
    try:
        tzname, evs = _events_for(month, location, lat, lon, tz, method, colors)
    except (AnchorError, TimezoneError, ValueError) as e:
        return _error(400, str(e))
    if current_rules() is None:
        return {"ok": False, "error": _dataset["error"], "timezone": tzname, "events": []}
    return {"ok": True, "timezone": tzname, "events": [e.to_dict() for e in evs]}


@app.get("/ics")
def ics(
    month: List[str] = Query([], description=_MONTH_HELP),
    location: Optional[str] = Query(None),
    lat: Optional[float] = Query(None),
    lon: Optional[float] = Query(None),
    tz: Optional[str] = Query(None),
    method: Optional[str] = Query(None),
    colors: Optional[str] = Query(None, pattern="^(rule_kind|title)$"),
):
    try:
        tzname, evs = _events_for(month, location, lat, lon, tz, method, colors)
    except (AnchorError, TimezoneError, ValueError) as e:
        return _error(400, str(e))
    payload = build_ics(evs, calname="Amaal Calendar", tzid=tzname)
    headers = {"Content-Disposition": 'attachment; filename="amaal-calendar.ics"'}
    return StreamingResponse(iter([payload]), media_type="text/calendar", headers=headers)


@app.get("/sections/{rule_id}")
def sections(rule_id: str, shape: Optional[str] = Query(None, pattern="^(flat|context_amaal)$")):
    rules = current_rules()
    rule = next((r for r in (rules.items if rules else ()) if r.id == rule_id), None)
    if rule is None:
        return _error(404, f"unknown rule {rule_id!r}")
    blocks = normalize_sections(rule.sections, shape or settings.section_shape)
    return {"ok": True, "id": rule.id, "text": rule.text, "sections": [s.to_dict() for s in blocks]}
