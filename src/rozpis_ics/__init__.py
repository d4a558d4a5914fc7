"""Hockey schedule exports (CSV) -> iCalendar files, one per team."""

__version__ = "1.0.0"
