"""
Minimal RFC 5545 writer for the entries produced by the expander.

Timed values are written as local wall time with TZID, backed by a VTIMEZONE
component; all-day values as VALUE=DATE. Output is deterministic for a given
DTSTAMP: UIDs are content hashes, not random.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from .models import TZ_NAME, CalendarEntry, When

PRODID = "-//rozpis-ics//CS"
UID_DOMAIN = "rozpis-ics"
MAX_LINE_OCTETS = 75

# EU rules: CEST from the last Sunday of March 02:00, CET from the last Sunday of October 03:00
VTIMEZONES: Dict[str, List[str]] = {
    TZ_NAME: [
        "BEGIN:VTIMEZONE",
        f"TZID:{TZ_NAME}",
        f"X-LIC-LOCATION:{TZ_NAME}",
        "BEGIN:DAYLIGHT",
        "TZOFFSETFROM:+0100",
        "TZOFFSETTO:+0200",
        "TZNAME:CEST",
        "DTSTART:19700329T020000",
        "RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU",
        "END:DAYLIGHT",
        "BEGIN:STANDARD",
        "TZOFFSETFROM:+0200",
        "TZOFFSETTO:+0100",
        "TZNAME:CET",
        "DTSTART:19701025T030000",
        "RRULE:FREQ=YEARLY;BYMONTH=10;BYDAY=-1SU",
        "END:STANDARD",
        "END:VTIMEZONE",
    ],
}


# -------------------------
# Small utilities
# -------------------------

def sha1(s: str) -> str:
    return hashlib.sha1(s.encode("utf-8")).hexdigest()


def fold_ics_line(line: str) -> List[str]:
    """
    RFC5545 line folding: content lines longer than 75 octets are folded.
    Counts UTF-8 octets and never splits a multi-byte character (labels are Czech).
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return [line]
    out: List[str] = []
    cur = ""
    cur_octets = 0
    for ch in line:
        size = len(ch.encode("utf-8"))
        if cur_octets + size > MAX_LINE_OCTETS:
            out.append(cur)
            # continuation lines start with a space, which counts too
            cur = " "
            cur_octets = 1
        cur += ch
        cur_octets += size
    out.append(cur)
    return out


def ics_escape(text: str) -> str:
    # Escape per RFC5545 for TEXT values
    text = text.replace("\\", "\\\\")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\n", "\\n")
    text = text.replace(";", r"\;")
    text = text.replace(",", r"\,")
    return text


def format_duration(delta: timedelta) -> str:
    """timedelta -> RFC5545 DURATION, e.g. PT45M, PT1H30M, P1D."""
    seconds = int(delta.total_seconds())
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    out = f"{sign}P"
    if days:
        out += f"{days}D"
    if hours or minutes or seconds or not days:
        out += "T"
        if hours:
            out += f"{hours}H"
        if minutes:
            out += f"{minutes}M"
        if seconds or not (hours or minutes):
            out += f"{seconds}S"
    return out


def format_stamp(stamp: datetime) -> str:
    return stamp.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def date_property(name: str, value: When, tz_name: str = TZ_NAME) -> str:
    # DTSTART;TZID=Europe/Prague:YYYYMMDDTHHMMSS or DTSTART;VALUE=DATE:YYYYMMDD
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(f"{name} needs a timezone-aware datetime, got {value!r}")
        local = value.astimezone(ZoneInfo(tz_name))
        return f"{name};TZID={tz_name}:{local.strftime('%Y%m%dT%H%M%S')}"
    if isinstance(value, date):
        return f"{name};VALUE=DATE:{value.strftime('%Y%m%d')}"
    raise TypeError(f"{name} must be a date or datetime, got {type(value).__name__}")


# -------------------------
# ICS helpers
# -------------------------

def entry_uid(uid_prefix: str, entry: CalendarEntry, seen: Dict[str, int]) -> str:
    key = f"{uid_prefix}:{entry.start.isoformat()}:{entry.summary}:{entry.location}"
    digest = sha1(key)
    # identical rows (same start/teams/rink) still need distinct UIDs
    count = seen.get(digest, 0)
    seen[digest] = count + 1
    if count:
        digest = sha1(f"{key}:{count}")
    return f"{digest}@{UID_DOMAIN}"


def ics_entry(
    entry: CalendarEntry,
    uid: str,
    stamp: datetime,
    tz_name: str = TZ_NAME,
) -> List[str]:
    if not entry.summary:
        raise ValueError("Calendar entry needs a summary")

    lines: List[str] = ["BEGIN:VEVENT"]
    lines.append(f"UID:{uid}")
    lines.append(f"DTSTAMP:{format_stamp(stamp)}")
    lines.append(f"SUMMARY:{ics_escape(entry.summary)}")
    lines.append(date_property("DTSTART", entry.start, tz_name))

    if entry.end is not None:
        lines.append(date_property("DTEND", entry.end, tz_name))
    elif entry.duration is not None:
        lines.append(f"DURATION:{format_duration(entry.duration)}")

    if entry.location:
        lines.append(f"LOCATION:{ics_escape(entry.location)}")
    if entry.travel_minutes is not None:
        travel = format_duration(timedelta(minutes=entry.travel_minutes))
        lines.append(f"X-APPLE-TRAVEL-DURATION;VALUE=DURATION:{travel}")

    lines.append("END:VEVENT")

    folded: List[str] = []
    for ln in lines:
        folded.extend(fold_ics_line(ln))
    return folded


def ics_calendar_header(calname: str, tz_name: str = TZ_NAME) -> List[str]:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{ics_escape(calname)}",
        f"X-WR-TIMEZONE:{tz_name}",
    ]
    folded: List[str] = []
    for ln in lines:
        folded.extend(fold_ics_line(ln))
    return folded


def ics_timezone(tz_name: str = TZ_NAME) -> List[str]:
    try:
        return list(VTIMEZONES[tz_name])
    except KeyError:
        raise ValueError(f"No VTIMEZONE definition for {tz_name!r}") from None


def ics_calendar_footer() -> List[str]:
    return ["END:VCALENDAR"]


def render_calendar(
    entries: Iterable[CalendarEntry],
    calname: str,
    uid_prefix: str,
    stamp: Optional[datetime] = None,
    tz_name: str = TZ_NAME,
) -> str:
    """Serialize entries, in the given order, into one VCALENDAR document."""
    if stamp is None:
        stamp = datetime.now(timezone.utc)
    entries = list(entries)

    seen: Dict[str, int] = {}
    lines: List[str] = []
    lines.extend(ics_calendar_header(calname, tz_name))
    # every TZID referenced needs its VTIMEZONE
    if any(not entry.is_all_day for entry in entries):
        lines.extend(ics_timezone(tz_name))
    for entry in entries:
        lines.extend(ics_entry(entry, entry_uid(uid_prefix, entry, seen), stamp, tz_name))
    lines.extend(ics_calendar_footer())
    return "\r\n".join(lines) + "\r\n"
