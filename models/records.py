"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(slots=True)
class RawReading:
    """A single semicolon-delimited export row before validation."""

    date: str
    time_of_day: str
    level: str
    line_number: Optional[int] = None


@dataclass(frozen=True, slots=True)
class AggregatedReading:
    """Mean level of one quarter-hour run of readings."""

    date: str
    time_label: str
    mean_level: str
    sample_count: int = 0

    @property
    def level_value(self) -> float:
        return float(self.mean_level)


@dataclass(frozen=True, slots=True)
class RowIssue:
    """A row that was dropped during aggregation."""

    row_number: int
    reason: str
    raw_value: Optional[str] = None


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the display layer needs for one refresh cycle.

    ``readings`` is ordered most-recent-bucket-first.
    """

    source_file: str
    refreshed_at: datetime
    readings: Tuple[AggregatedReading, ...] = field(default_factory=tuple)
    dropped: Tuple[RowIssue, ...] = field(default_factory=tuple)

    @property
    def latest(self) -> Optional[AggregatedReading]:
        return self.readings[0] if self.readings else None

    def chronological(self) -> Tuple[AggregatedReading, ...]:
        return tuple(reversed(self.readings))
