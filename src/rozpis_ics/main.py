#!/usr/bin/env python3
"""
Schedule export -> iCalendar generator

Flow:
- Read config.yml (list of feeds: filename, url, title; optional output_dir)
- For each feed, in order:
    download the CSV export (Windows-1250, ';'-delimited, header line)
    -> rows -> events -> drop "Nehraje se" -> arrival + match entries
    -> one VCALENDAR document
- Write {output_dir}/{filename}.ics, or print to stdout when no output dir is set

Notes:
- A failing feed is logged and counted; the rest of the batch still runs.
- Exit status is 1 when any feed failed, 2 when the config itself is unusable.
- Progress goes to stderr so stdout can carry the calendar.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .config import CONFIG_PATH_DEFAULT, AppConfig, FeedConfig, load_config
from .errors import ConfigError, RozpisError
from .expand import expand_events
from .fetch import decode_schedule, fetch_bytes
from .ics import render_calendar
from .models import CalendarEntry
from .rows import parse_schedule

logger = logging.getLogger(__name__)

OUTPUT_DIR_ENV = "OUTPUT_DIR"

Fetcher = Callable[[str], bytes]


# -------------------------
# One feed
# -------------------------

def build_entries(feed: FeedConfig, fetch: Fetcher = fetch_bytes) -> List[CalendarEntry]:
    text = decode_schedule(fetch(feed.url))
    events = parse_schedule(text)
    entries = expand_events(events)
    logger.debug(
        "%s: %d rows, %d calendar entries", feed.filename, len(events), len(entries)
    )
    return entries


def generate_calendar(
    feed: FeedConfig,
    stamp: Optional[datetime] = None,
    fetch: Fetcher = fetch_bytes,
) -> str:
    """Run the whole pipeline for one feed and return the finished document."""
    entries = build_entries(feed, fetch=fetch)
    return render_calendar(entries, calname=feed.title, uid_prefix=feed.filename, stamp=stamp)


def _file_mode() -> int:
    # what a plain open() would give, mkstemp files are 0600
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_calendar(document: str, feed: FeedConfig, output_dir: Optional[str]) -> None:
    if output_dir is None:
        # UTF-8 regardless of the console's locale encoding
        sys.stdout.flush()
        sys.stdout.buffer.write(document.encode("utf-8"))
        sys.stdout.buffer.flush()
        return

    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"{feed.filename}.ics")
    # write next to the target and rename, so readers never see half a calendar
    fd, tmp_path = tempfile.mkstemp(dir=output_dir, prefix=f".{feed.filename}.", suffix=".tmp")
    os.close(fd)
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(document)
        os.chmod(tmp_path, _file_mode())
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise
    logger.debug("Wrote %s", path)


# -------------------------
# Batch
# -------------------------

def run_batch(
    feeds: Sequence[FeedConfig],
    output_dir: Optional[str] = None,
    stamp: Optional[datetime] = None,
    fetch: Fetcher = fetch_bytes,
) -> int:
    """Process every feed; returns how many of them failed."""
    if stamp is None:
        stamp = datetime.now(timezone.utc)

    failures = 0
    for feed in feeds:
        logger.info("Generating calendar: %s.ics (%s)", feed.filename, feed.title)
        try:
            entries = build_entries(feed, fetch=fetch)
            document = render_calendar(
                entries, calname=feed.title, uid_prefix=feed.filename, stamp=stamp
            )
            write_calendar(document, feed, output_dir)
        except (RozpisError, OSError) as e:
            failures += 1
            logger.error("Failed to generate %s.ics: %s: %s", feed.filename, type(e).__name__, e)
            continue
        logger.info("Generated %s.ics (%d entries)", feed.filename, len(entries))
    return failures


def select_feeds(feeds: Sequence[FeedConfig], names: Optional[Sequence[str]]) -> List[FeedConfig]:
    if not names:
        return list(feeds)
    known = {f.filename for f in feeds}
    unknown = [n for n in names if n not in known]
    if unknown:
        raise ConfigError(f"Unknown feed(s): {', '.join(unknown)}")
    wanted = set(names)
    return [f for f in feeds if f.filename in wanted]


def resolve_output_dir(flag: Optional[str], cfg: AppConfig) -> Optional[str]:
    # --output-dir, then $OUTPUT_DIR, then config; None means stdout
    return flag or os.environ.get(OUTPUT_DIR_ENV) or cfg.output_dir


def main(argv: Optional[Sequence[str]] = None) -> None:
    ap = argparse.ArgumentParser(
        prog="rozpis-ics",
        description="Download league schedules and write one iCalendar file per team.",
    )
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--output-dir", default=None)
    ap.add_argument(
        "--feed",
        action="append",
        dest="feeds",
        metavar="FILENAME",
        help="only generate this feed (repeatable)",
    )
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        cfg = load_config(args.config)
        feeds = select_feeds(cfg.feeds, args.feeds)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(2)

    output_dir = resolve_output_dir(args.output_dir, cfg)
    logger.info("Generating calendars for %d feeds...", len(feeds))

    failures = run_batch(feeds, output_dir=output_dir, fetch=fetch_bytes)
    if failures:
        logger.error("Total failures: %d of %d calendars", failures, len(feeds))
        sys.exit(1)

    logger.info("Done. Generated %d calendars.", len(feeds))


if __name__ == "__main__":
    main()
