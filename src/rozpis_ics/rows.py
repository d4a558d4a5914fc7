"""
Schedule export rows -> Event.

Column contract of the exporter (positional, header line first):

    0 Den | 1 Datum | 2 Začátek | 3 ZS | 4 Soutěž | 5 Číslo utkání |
    6 Domácí | 7 Hosté | 8 Stav

Datum/Začátek come in three shapes:
- "01.09.2025 - 03.09.2025" in Datum        -> all-day range, DTEND exclusive
- "01.09.2025" with "xx - yy" in Začátek    -> single all-day date
- "15.09.2025" with "18:30"                 -> timed match, 2 hours long
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timedelta
from typing import List, Sequence

from .errors import InvalidDate, InvalidDateTime, MalformedRow, RozpisError
from .models import LOCAL_TZ, Event, shift
from .venues import lookup

DELIMITER = ";"
COLUMN_COUNT = 9
RANGE_SEPARATOR = " - "

DATE_FORMAT = "%d.%m.%Y"
DATETIME_FORMAT = "%d.%m.%Y %H:%M"

MATCH_DURATION = timedelta(hours=2)

(
    COL_DAY,
    COL_DATE,
    COL_TIME,
    COL_VENUE,
    COL_COMPETITION,
    COL_MATCH_NUMBER,
    COL_HOME,
    COL_AWAY,
    COL_STATE,
) = range(COLUMN_COUNT)


# -------------------------
# Date/time text
# -------------------------

def parse_date(text: str) -> date:
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(f"Invalid date {text!r}") from None


def parse_date_range(text: str) -> tuple[date, date]:
    """Parse "d.m.Y - d.m.Y" into (start, exclusive end)."""
    parts = text.split("-")
    if len(parts) != 2:
        raise InvalidDate(f"Invalid date {text!r}")
    start = parse_date(parts[0])
    end = parse_date(parts[1])
    return start, end + timedelta(days=1)


def parse_datetime(date_text: str, time_text: str) -> datetime:
    combined = f"{date_text.strip()} {time_text.strip()}"
    try:
        naive = datetime.strptime(combined, DATETIME_FORMAT)
    except ValueError:
        raise InvalidDateTime(f"Invalid date {date_text!r} and time {time_text!r}") from None
    return naive.replace(tzinfo=LOCAL_TZ)


# -------------------------
# Rows
# -------------------------

def parse_row(row: Sequence[str]) -> Event:
    if len(row) < COLUMN_COUNT:
        raise MalformedRow(f"Expected {COLUMN_COUNT} columns, got {len(row)}: {list(row)!r}")

    date_text = row[COL_DATE]
    time_text = row[COL_TIME]

    if RANGE_SEPARATOR in date_text:
        is_all_day = True
        start, end = parse_date_range(date_text)
    elif RANGE_SEPARATOR in time_text:
        # time column shows a placeholder range, the day itself is the event
        is_all_day = True
        start = end = parse_date(date_text)
    else:
        is_all_day = False
        start = parse_datetime(date_text, time_text)
        end = shift(start, MATCH_DURATION)

    return Event(
        start_date=start,
        end_date=end,
        is_all_day=is_all_day,
        venue=lookup(row[COL_VENUE].strip()),
        home=row[COL_HOME],
        away=row[COL_AWAY],
        state=row[COL_STATE],
        day_label=row[COL_DAY],
        competition=row[COL_COMPETITION],
        match_number=row[COL_MATCH_NUMBER],
    )


def parse_schedule(text: str, delimiter: str = DELIMITER) -> List[Event]:
    """Parse the whole export. The first line is a header; blank lines are skipped."""
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    events: List[Event] = []
    try:
        for index, row in enumerate(reader):
            if index == 0:
                continue
            if not any(cell.strip() for cell in row):
                continue
            try:
                events.append(parse_row(row))
            except RozpisError as e:
                e.line = reader.line_num
                raise
    except csv.Error as e:
        # oversized fields, NUL bytes, broken quoting
        err = MalformedRow(f"Unreadable CSV: {e}")
        err.line = reader.line_num
        raise err from e
    return events
