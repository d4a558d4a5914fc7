from datetime import date, datetime, timedelta, timezone

import pytest
from icalendar import Calendar

from rozpis_ics.expand import expand_events
from rozpis_ics.ics import fold_ics_line, format_duration, ics_escape, render_calendar
from rozpis_ics.models import LOCAL_TZ, CalendarEntry
from rozpis_ics.rows import parse_row

STAMP = datetime(2025, 8, 1, 12, 0, tzinfo=timezone.utc)


def _entries():
    rows = [
        ["Po", "01.09.2025 - 03.09.2025", "", "BE", "Turnaj", "1", "TeamA", "TeamB", "Odehráno"],
        ["Po", "15.09.2025", "18:30", "KL", "Liga", "2", "TeamA", "TeamB", "Odehráno"],
        ["So", "20.09.2025", "08:00 - 16:00", "ČA", "Kemp", "3", "TeamA", "TeamC", "Odehráno"],
    ]
    return expand_events([parse_row(r) for r in rows])


def _lines(doc):
    return doc.split("\r\n")


def test_document_is_wrapped_in_vcalendar_with_crlf():
    doc = render_calendar(_entries(), calname="U15 Beroun", uid_prefix="u15", stamp=STAMP)

    lines = _lines(doc)
    assert lines[0] == "BEGIN:VCALENDAR"
    assert lines[-2] == "END:VCALENDAR"
    assert lines[-1] == ""
    assert "X-WR-CALNAME:U15 Beroun" in lines
    assert "X-WR-TIMEZONE:Europe/Prague" in lines
    assert lines.count("BEGIN:VEVENT") == 4
    assert "\n" not in doc.replace("\r\n", "")


def test_all_day_entry_uses_date_values():
    doc = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    lines = _lines(doc)

    assert "DTSTART;VALUE=DATE:20250901" in lines
    assert "DTEND;VALUE=DATE:20250904" in lines
    assert "LOCATION:Beroun\\, Zimní stadion" in lines


def test_timed_entries_use_local_time_with_tzid():
    doc = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    lines = _lines(doc)

    assert "DTSTART;TZID=Europe/Prague:20250915T173000" in lines
    assert "DURATION:PT1H" in lines
    assert "X-APPLE-TRAVEL-DURATION;VALUE=DURATION:PT45M" in lines
    assert "DTSTART;TZID=Europe/Prague:20250915T183000" in lines
    assert "DTEND;TZID=Europe/Prague:20250915T203000" in lines
    assert "SUMMARY:TeamA - TeamB" in lines
    assert "DTSTAMP:20250801T120000Z" in lines


def test_utc_datetimes_are_written_as_local_time():
    entry = CalendarEntry(
        start=datetime(2025, 9, 15, 16, 30, tzinfo=timezone.utc),
        end=datetime(2025, 9, 15, 18, 30, tzinfo=timezone.utc),
        summary="A - B",
        location="",
    )

    lines = _lines(render_calendar([entry], calname="x", uid_prefix="p", stamp=STAMP))

    assert "DTSTART;TZID=Europe/Prague:20250915T183000" in lines
    assert not any(ln.startswith("LOCATION") for ln in lines)


def test_timed_entries_come_with_a_vtimezone():
    doc = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    lines = _lines(doc)

    assert lines.count("BEGIN:VTIMEZONE") == 1
    assert "TZID:Europe/Prague" in lines
    assert "RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=-1SU" in lines
    assert "RRULE:FREQ=YEARLY;BYMONTH=10;BYDAY=-1SU" in lines
    # before the first event
    assert lines.index("END:VTIMEZONE") < lines.index("BEGIN:VEVENT")

    (vtimezone,) = Calendar.from_ical(doc).walk("VTIMEZONE")
    assert str(vtimezone.get("TZID")) == "Europe/Prague"


def test_every_referenced_tzid_is_defined():
    doc = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    lines = _lines(doc)

    referenced = {ln.split("TZID=", 1)[1].split(":", 1)[0] for ln in lines if ";TZID=" in ln}
    defined = {ln[len("TZID:"):] for ln in lines if ln.startswith("TZID:")}
    assert referenced
    assert referenced <= defined


def test_all_day_only_calendar_has_no_vtimezone():
    doc = render_calendar(_entries()[:1], calname="x", uid_prefix="u15", stamp=STAMP)

    assert "BEGIN:VTIMEZONE" not in doc
    assert ";TZID=" not in doc


def test_timezone_without_definition_is_rejected():
    with pytest.raises(ValueError):
        render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP, tz_name="Europe/Vienna")


def test_rendering_is_deterministic_for_the_same_stamp():
    first = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    second = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)

    assert first == second


def test_uids_are_unique_even_for_duplicate_rows():
    row = ["Po", "15.09.2025", "18:30", "KL", "Liga", "2", "TeamA", "TeamB", "Odehráno"]
    entries = expand_events([parse_row(row), parse_row(row)])

    doc = render_calendar(entries, calname="x", uid_prefix="u15", stamp=STAMP)
    uids = [ln for ln in _lines(doc) if ln.startswith("UID:")]

    assert len(uids) == 4
    assert len(set(uids)) == 4


def test_uids_survive_a_row_inserted_before():
    inserted = ["Ne", "14.09.2025", "10:00", "PB", "Liga", "9", "TeamX", "TeamY", "Odehráno"]
    before = _entries()
    after = expand_events([parse_row(inserted)]) + before

    uids_before = [ln for ln in _lines(render_calendar(before, "x", "u15", STAMP)) if ln.startswith("UID:")]
    uids_after = [ln for ln in _lines(render_calendar(after, "x", "u15", STAMP)) if ln.startswith("UID:")]

    assert uids_after[2:] == uids_before


def test_uids_depend_on_feed():
    a = render_calendar(_entries(), calname="x", uid_prefix="u15", stamp=STAMP)
    b = render_calendar(_entries(), calname="x", uid_prefix="u13", stamp=STAMP)

    uids_a = {ln for ln in _lines(a) if ln.startswith("UID:")}
    uids_b = {ln for ln in _lines(b) if ln.startswith("UID:")}
    assert not uids_a & uids_b


def test_naive_datetime_is_rejected():
    entry = CalendarEntry(start=datetime(2025, 9, 15, 18, 30), summary="A - B", location="")

    with pytest.raises(ValueError):
        render_calendar([entry], calname="x", uid_prefix="p", stamp=STAMP)


def test_empty_calendar_is_still_valid():
    doc = render_calendar([], calname="x", uid_prefix="p", stamp=STAMP)

    assert "BEGIN:VEVENT" not in doc
    assert Calendar.from_ical(doc).walk("VEVENT") == []


def test_long_lines_are_folded_by_octets_without_breaking_characters():
    line = "LOCATION:" + "Říčany u Prahy, Com-Sys Ice Arena; Jindřichův Hradec " * 3

    folded = fold_ics_line(line)

    assert len(folded) > 1
    assert all(len(part.encode("utf-8")) <= 75 for part in folded)
    assert all(part.startswith(" ") for part in folded[1:])
    assert folded[0] + "".join(part[1:] for part in folded[1:]) == line


def test_short_lines_are_not_folded():
    assert fold_ics_line("SUMMARY:A - B") == ["SUMMARY:A - B"]


def test_text_escaping():
    assert ics_escape("Praha, SPM; ARENA\\x\nnový řádek") == "Praha\\, SPM\\; ARENA\\\\x\\nnový řádek"


@pytest.mark.parametrize(
    "delta,expected",
    [
        (timedelta(minutes=45), "PT45M"),
        (timedelta(minutes=90), "PT1H30M"),
        (timedelta(hours=1), "PT1H"),
        (timedelta(hours=2), "PT2H"),
        (timedelta(days=1), "P1D"),
        (timedelta(0), "PT0S"),
    ],
)
def test_format_duration(delta, expected):
    assert format_duration(delta) == expected


def test_round_trip_through_icalendar_keeps_entries_in_order():
    entries = _entries()
    doc = render_calendar(entries, calname="U15 Beroun", uid_prefix="u15", stamp=STAMP)

    cal = Calendar.from_ical(doc)
    parsed = []
    for component in cal.walk("VEVENT"):
        end = component.get("DTEND")
        parsed.append(
            (
                component.get("DTSTART").dt,
                end.dt if end is not None else None,
                str(component.get("LOCATION")),
                str(component.get("SUMMARY")),
            )
        )

    expected = [(e.start, e.end, e.location, e.summary) for e in entries]
    assert parsed == expected


def test_round_trip_keeps_duration_and_travel_time():
    arrival = _entries()[1]
    doc = render_calendar([arrival], calname="x", uid_prefix="u15", stamp=STAMP)

    (component,) = Calendar.from_ical(doc).walk("VEVENT")

    assert component.get("DTSTART").dt == datetime(2025, 9, 15, 17, 30, tzinfo=LOCAL_TZ)
    assert component.decoded("DURATION") == timedelta(hours=1)
    assert component.get("X-APPLE-TRAVEL-DURATION").to_ical() == b"PT45M"
    assert isinstance(component.get("DTSTART").dt, datetime)


def test_round_trip_keeps_date_only_values():
    doc = render_calendar(_entries()[:1], calname="x", uid_prefix="u15", stamp=STAMP)

    (component,) = Calendar.from_ical(doc).walk("VEVENT")

    assert component.get("DTSTART").dt == date(2025, 9, 1)
    assert not isinstance(component.get("DTSTART").dt, datetime)
