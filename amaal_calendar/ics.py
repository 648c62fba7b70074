from __future__ import annotations
from datetime import time, timedelta
from hashlib import md5
from typing import Iterable, Optional

import pytz
from icalendar import Calendar, Event

from .models import ExpandedEvent

UTC = pytz.utc
PRODID = "-//Amaal Calendar (Location-aware)//amaal//EN"


def stable_uid(e: ExpandedEvent) -> str:
    if e.all_day:
        key = f"{e.title}|{e.start.date().isoformat()}|ALLDAY"
    else:
        key = f"{e.title}|{e.start.isoformat()}|{e.end.isoformat()}"
    return f"{md5(key.encode()).hexdigest()}@amaalcalendar"


def all_day_span(e: ExpandedEvent):
    """``(first_date, end_date_exclusive)`` of an all-day event."""
    first = e.start.date()
    last = e.end.date()
    end = last if e.end.time() == time(0, 0) else last + timedelta(days=1)
    return first, max(end, first + timedelta(days=1))


def build_ics(events: Iterable[ExpandedEvent], prodid: str = PRODID,
              calname: str = "Amaal Calendar", tzid: Optional[str] = None) -> bytes:
    cal = Calendar()
    cal.add("prodid", prodid)
    cal.add("version", "2.0")
    cal.add("X-WR-CALNAME", calname)
    if tzid:
        cal.add("X-WR-TIMEZONE", tzid)
    for e in events:
        ev = Event()
        ev.add("uid", stable_uid(e))
        ev.add("summary", e.title)
        ev.add("description", e.description or "")
        if e.all_day:
            first, end = all_day_span(e)
            ev.add("dtstart", first)
            ev.add("dtend", end)
        else:
            # timed events in UTC, clients render in local tz
            ev.add("dtstart", e.start.astimezone(UTC))
            ev.add("dtend", e.end.astimezone(UTC))
        cal.add_component(ev)
    return cal.to_ical()
