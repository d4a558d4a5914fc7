from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from .errors import ConfigError

CONFIG_PATH_DEFAULT = "config.yml"


@dataclass(frozen=True)
class FeedConfig:
    filename: str   # output identifier, written as {filename}.ics
    url: str
    title: str


@dataclass
class AppConfig:
    feeds: List[FeedConfig] = field(default_factory=list)
    output_dir: Optional[str] = None


def _parse_feed(index: int, item: Any) -> FeedConfig:
    if not isinstance(item, dict):
        raise ConfigError(f"Feed #{index + 1} must be a mapping, got {type(item).__name__}")
    values: Dict[str, str] = {}
    for key in ("filename", "url", "title"):
        value = str(item.get(key) or "").strip()
        if not value:
            raise ConfigError(f"Feed #{index + 1} is missing {key!r}")
        values[key] = value
    return FeedConfig(**values)


def parse_config(data: Any) -> AppConfig:
    """
    Accepts either the bare feed list (legacy config.json) or a mapping:

        output_dir: public
        feeds:
          - filename: u15
            url: https://...
            title: U15 Beroun
    """
    if data is None:
        data = []
    if isinstance(data, list):
        raw_feeds: Any = data
        output_dir = None
    elif isinstance(data, dict):
        raw_feeds = data.get("feeds") or []
        output_dir = str(data["output_dir"]) if data.get("output_dir") else None
    else:
        raise ConfigError(f"Config must be a list or a mapping, got {type(data).__name__}")

    if not isinstance(raw_feeds, list):
        raise ConfigError("'feeds' must be a list")

    feeds = [_parse_feed(i, item) for i, item in enumerate(raw_feeds)]

    # every feed writes its own file
    seen = set()
    for feed in feeds:
        if feed.filename in seen:
            raise ConfigError(f"Duplicate output filename {feed.filename!r}")
        seen.add(feed.filename)

    return AppConfig(feeds=feeds, output_dir=output_dir)


def load_config(path: str = CONFIG_PATH_DEFAULT) -> AppConfig:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    try:
        # YAML is a superset of JSON, so config.json loads here too
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config {path}: {e}") from e
    return parse_config(data)
