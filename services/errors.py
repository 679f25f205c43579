"""Error taxonomy for directory selection, row parsing and refresh cycles."""

from __future__ import annotations


class DirectoryUnreadable(OSError):
    """The CSV directory could not be listed."""


class NoQualifyingFile(LookupError):
    """No file in the directory matches the selection criteria."""


class MalformedRow(ValueError):
    """Base class for per-row problems that drop the row and continue."""

    reason = "malformed row"

    def __init__(self, raw_value: str | None = None, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)
        self.raw_value = raw_value


class MalformedTimestamp(MalformedRow):
    reason = "invalid time of day"


class MalformedReading(MalformedRow):
    reason = "invalid level value"


class FetchFailure(RuntimeError):
    """A refresh cycle could not produce a new snapshot."""
