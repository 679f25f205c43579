"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import AggregatedReading, DashboardSnapshot, RowIssue
from services.dashboard import RefreshOutcome
from services.thresholds import LevelStatus, classify_level


class LatestFileResponse(BaseModel):
    """Name of the newest qualifying export."""

    latest_file: str = Field(..., description="File name inside the CSV directory.")


class ReadingOut(BaseModel):
    """One quarter-hour average as shown in the table."""

    date: str
    time: str = Field(..., description="Start of the run, HH:MM.")
    mean_level: str = Field(..., description="Mean LAS in dB(A), two decimals.")
    sample_count: int = Field(..., ge=0)
    status: LevelStatus

    @classmethod
    def from_reading(cls, reading: AggregatedReading) -> "ReadingOut":
        return cls(
            date=reading.date,
            time=reading.time_label,
            mean_level=reading.mean_level,
            sample_count=reading.sample_count,
            status=classify_level(reading.time_label, reading.level_value),
        )


class DroppedRow(BaseModel):
    """A row skipped because its time or level could not be parsed."""

    row_number: int = Field(..., ge=1)
    reason: str
    raw_value: Optional[str] = None

    @classmethod
    def from_issue(cls, issue: RowIssue) -> "DroppedRow":
        return cls(row_number=issue.row_number, reason=issue.reason, raw_value=issue.raw_value)


class DashboardResponse(BaseModel):
    """Current dashboard state, most recent reading first."""

    source_file: Optional[str] = None
    refreshed_at: Optional[datetime] = None
    poll_interval: float
    latest: Optional[ReadingOut] = None
    readings: List[ReadingOut] = Field(default_factory=list)
    dropped_rows: List[DroppedRow] = Field(default_factory=list)
    last_error: Optional[str] = None

    @classmethod
    def build(
        cls,
        snapshot: Optional[DashboardSnapshot],
        readings: List[AggregatedReading],
        poll_interval: float,
        last_error: Optional[str] = None,
    ) -> "DashboardResponse":
        if snapshot is None:
            return cls(poll_interval=poll_interval, last_error=last_error)
        latest = snapshot.latest
        return cls(
            source_file=snapshot.source_file,
            refreshed_at=snapshot.refreshed_at,
            poll_interval=poll_interval,
            latest=ReadingOut.from_reading(latest) if latest is not None else None,
            readings=[ReadingOut.from_reading(reading) for reading in readings],
            dropped_rows=[DroppedRow.from_issue(issue) for issue in snapshot.dropped],
            last_error=last_error,
        )


class RefreshResponse(BaseModel):
    """Result of a manually triggered refresh cycle."""

    outcome: RefreshOutcome
    source_file: Optional[str] = None
    reading_count: int = Field(0, ge=0)
    detail: Optional[str] = None
