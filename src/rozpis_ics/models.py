from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from .venues import Venue

TZ_NAME = "Europe/Prague"
LOCAL_TZ = ZoneInfo(TZ_NAME)

# date for all-day values (plain calendar days), timezone-aware datetime otherwise
When = Union[date, datetime]


def shift(dt: datetime, delta: timedelta) -> datetime:
    # elapsed time, not wall-clock time, across DST changes
    return (dt.astimezone(timezone.utc) + delta).astimezone(dt.tzinfo)


@dataclass(frozen=True)
class Event:
    start_date: When
    end_date: When
    is_all_day: bool
    venue: Venue
    home: str
    away: str
    state: str
    day_label: str = ""
    competition: str = ""
    match_number: str = ""

    @property
    def summary(self) -> str:
        return f"{self.home} - {self.away}"


@dataclass(frozen=True)
class CalendarEntry:
    start: When
    summary: str
    location: str
    end: Optional[When] = None
    duration: Optional[timedelta] = None
    travel_minutes: Optional[int] = None

    @property
    def is_all_day(self) -> bool:
        return not isinstance(self.start, datetime)
