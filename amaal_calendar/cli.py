import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from .config import DEFAULT_RULES_PATH, LOCATIONS, resolve_place
from .dataset import load_month_anchors, load_rule_set, parse_month_specs
from .daylight import METHODS, DEFAULT_METHOD, AstralDayBoundaries
from .errors import AmaalCalendarError
from .expander import COLOR_POLICIES, expand
from .ics import build_ics
from .location import autolocate
from .models import ExpandedEvent, MonthAnchor
from .sections import SECTION_SHAPES, render_text

logger = logging.getLogger("amaal_calendar")


def ensure_site_dir():
    Path("site").mkdir(parents=True, exist_ok=True)


def render_events_text(events: List[ExpandedEvent], shape: str = "flat") -> str:
    out = []
    for e in events:
        when = (f"{e.start.date()} (all day)" if e.all_day
                else f"{e.start:%Y-%m-%d %H:%M} - {e.end:%H:%M}")
        out.append(f"{when}  {e.title}")
        body = render_text(e.sections, e.description, shape)
        if body:
            out.extend("    " + line for line in body.splitlines())
    return "\n".join(out) + "\n"


def main(argv=None):
    ap = argparse.ArgumentParser(
        description="Amaal Calendar: expand Hijri-month worship rules into calendar events (.json/.ics), location-aware."
    )
    ap.add_argument("--rules", type=str, default=str(DEFAULT_RULES_PATH), help="Rule dataset (JSON)")
    ap.add_argument("--month", action="append", default=[], metavar="NAME:YYYY-MM-DD[:29|30]",
                    help="Anchor a lunar month, e.g. Ramadan:2024-03-11:30 (repeatable)")
    ap.add_argument("--anchors", type=str, help='JSON file {"Ramadan": {"startDateISO": ..., "length": 30}}')
    ap.add_argument("--location", choices=sorted(LOCATIONS), default="qatar", help="Location preset")
    ap.add_argument("--lat", type=float, help="Latitude (decimal), overrides --location")
    ap.add_argument("--lon", type=float, help="Longitude (decimal), overrides --location")
    ap.add_argument("--tz", type=str, help="IANA timezone, e.g. 'Asia/Qatar' (looked up from lat/lon if omitted)")
    ap.add_argument("--auto-location", action="store_true", help="Detect lat/lon from IP")
    ap.add_argument("--method", choices=sorted(METHODS), default=DEFAULT_METHOD, help="Fajr/Maghrib calculation method")
    ap.add_argument("--colors", choices=sorted(COLOR_POLICIES), default="rule_kind", help="Event color policy")
    ap.add_argument("--sections", choices=SECTION_SHAPES, default="flat", help="Section shape for text output")
    ap.add_argument("--format", choices=["json", "ics", "text"], default="ics")
    ap.add_argument("--outfile", type=str, default=None, help="Output path ('-' for stdout)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.auto_location:
        if args.lat is not None or args.lon is not None:
            print("Note: --auto-location overrides --lat/--lon", file=sys.stderr)
        try:
            args.lat, args.lon = autolocate()
        except Exception as e:
            raise SystemExit(f"Auto-location failed ({e}). Pass --lat and --lon.")

    try:
        rules = load_rule_set(args.rules)
        anchors: Dict[str, MonthAnchor] = load_month_anchors(args.anchors) if args.anchors else {}
        anchors.update(parse_month_specs(args.month))
        logger.debug("%d rules, anchored months: %s", len(rules.items), ", ".join(anchors) or "none")
        tz, coords = resolve_place(args.location, args.lat, args.lon, args.tz)
        events = expand(rules, anchors, tz, coords,
                        provider=AstralDayBoundaries(args.method), color_policy=args.colors)
    except (AmaalCalendarError, ValueError) as e:
        raise SystemExit(f"error: {e}")

    if not anchors:
        print("Note: no lunar month anchored (use --month or --anchors); calendar is empty.", file=sys.stderr)

    if args.format == "ics":
        payload = build_ics(events, calname="Amaal Calendar", tzid=tz)
    elif args.format == "json":
        payload = json.dumps([e.to_dict() for e in events], ensure_ascii=False, indent=2).encode("utf-8")
    else:
        payload = render_events_text(events, args.sections).encode("utf-8")

    if args.outfile == "-":
        sys.stdout.buffer.write(payload)
        return
    if args.outfile:
        out = Path(args.outfile)
    else:
        ensure_site_dir()
        out = Path(f"site/amaal-calendar.{args.format if args.format != 'text' else 'txt'}")
    out.write_bytes(payload)
    print(f"Wrote {out}  ({len(events)} events, tz={tz}, lat={coords.lat}, lon={coords.lon}, method={args.method})")


if __name__ == "__main__":
    main()
