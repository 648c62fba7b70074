# scripts/debug_month.py
import argparse
from collections import defaultdict

from amaal_calendar.config import DEFAULT_RULES_PATH, resolve_place
from amaal_calendar.dataset import load_rule_set, parse_month_spec
from amaal_calendar.dates import lunar_day_to_civil, resolve_tz, weekday_code
from amaal_calendar.daylight import DEFAULT_METHOD, METHODS, AstralDayBoundaries
from amaal_calendar.errors import DayBoundaryError
from amaal_calendar.expander import expand


def debug_month(spec: str, rules_path: str, location: str, method: str, provider=None):
    anchors = parse_month_spec(spec)
    (key, anchor), = anchors.items()
    tzname, coords = resolve_place(location)
    tz = resolve_tz(tzname)
    provider = provider or AstralDayBoundaries(method)
    print(f"\n=== {key} from {anchor.start_date} ({anchor.length} days) at "
          f"lat={coords.lat}, lon={coords.lon}, tz={tzname}, method={method} ===")

    rules = load_rule_set(rules_path)
    events = expand(rules, anchors, tz, coords, provider=provider)

    # bucket events by the civil date they start on
    by_date = defaultdict(list)
    for e in events:
        by_date[e.start.date()].append(e)

    for d in range(1, anchor.length + 1):
        civil = lunar_day_to_civil(anchor, d)
        try:
            fajr, maghrib = provider(civil, tz, coords)
            span = f"fajr {fajr:%H:%M}  maghrib {maghrib:%H:%M}"
        except DayBoundaryError:
            span = "no dawn/dusk"
        print(f"  day {d:2d}  {civil}  {weekday_code(civil)}  {span}")
        for e in by_date.get(civil, []):
            kind = "all day" if e.all_day else f"{e.start:%H:%M}-{e.end:%H:%M}"
            print(f"            -> {e.title}  [{kind}]  {e.color}")

    print(f"\n{len(events)} events in total.")


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Print a lunar month day by day with dawn/dusk and events.")
    ap.add_argument("month", help="e.g. Ramadan:2024-03-11:30")
    ap.add_argument("--rules", default=str(DEFAULT_RULES_PATH))
    ap.add_argument("--location", default="qatar")
    ap.add_argument("--method", choices=sorted(METHODS), default=DEFAULT_METHOD)
    a = ap.parse_args()
    debug_month(a.month, a.rules, a.location, a.method)
