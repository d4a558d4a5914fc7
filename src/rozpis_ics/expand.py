from __future__ import annotations

from datetime import timedelta
from typing import Iterable, List

from .models import CalendarEntry, Event, shift

CANCELLED_STATE = "Nehraje se"

ARRIVAL_SUMMARY = "Sraz hodinu před zápasem + rozcvička"
ARRIVAL_LEAD = timedelta(hours=1)
ARRIVAL_DURATION = timedelta(hours=1)


def is_cancelled(event: Event) -> bool:
    return event.state == CANCELLED_STATE


def arrival_entry(event: Event) -> CalendarEntry:
    # meet an hour before the face-off for warm-up
    return CalendarEntry(
        start=shift(event.start_date, -ARRIVAL_LEAD),
        duration=ARRIVAL_DURATION,
        location=event.venue.label,
        summary=ARRIVAL_SUMMARY,
        travel_minutes=event.venue.travel_minutes,
    )


def match_entry(event: Event) -> CalendarEntry:
    return CalendarEntry(
        start=event.start_date,
        end=event.end_date,
        location=event.venue.label,
        summary=event.summary,
    )


def expand_events(events: Iterable[Event]) -> List[CalendarEntry]:
    """
    Drop cancelled matches and turn the rest into calendar entries, keeping row order.
    Timed matches get an arrival entry right before the match itself; all-day
    events have no meeting time, so they only get the match entry.
    """
    entries: List[CalendarEntry] = []
    for event in events:
        if is_cancelled(event):
            continue
        if not event.is_all_day:
            entries.append(arrival_entry(event))
        entries.append(match_entry(event))
    return entries
