from __future__ import annotations

import logging

import requests

from .errors import EncodingFailure, FetchFailure

logger = logging.getLogger(__name__)

SOURCE_ENCODING = "cp1250"
USER_AGENT = "rozpis-ics/1.0"


def fetch_bytes(url: str, timeout: int = 30) -> bytes:
    # raw bytes: the export is Windows-1250 and we decode it ourselves
    try:
        r = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
        r.raise_for_status()
    except requests.RequestException as e:
        raise FetchFailure(f"Cannot download {url}: {e}") from e
    logger.debug("Downloaded %d bytes from %s", len(r.content), url)
    return r.content


def decode_schedule(raw: bytes, encoding: str = SOURCE_ENCODING) -> str:
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise EncodingFailure(f"Cannot decode schedule as {encoding}: {e}") from e
