from __future__ import annotations

from typing import Optional


class RozpisError(Exception):
    """Base class for everything that fails a single feed."""

    # 1-based source line, set by the schedule parser
    line: Optional[int] = None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.line is not None:
            return f"line {self.line}: {msg}"
        return msg


class ConfigError(RozpisError):
    pass


class FetchFailure(RozpisError):
    pass


class EncodingFailure(RozpisError):
    pass


class MalformedRow(RozpisError, ValueError):
    pass


class InvalidDate(RozpisError, ValueError):
    pass


class InvalidDateTime(RozpisError, ValueError):
    pass


class UnknownVenue(RozpisError, ValueError):
    def __init__(self, code: str) -> None:
        super().__init__(f"Unknown venue code {code!r}")
        self.code = code
