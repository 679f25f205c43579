"""Quarter-hour averaging of noise level readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from models.records import AggregatedReading, RawReading, RowIssue
from services.errors import MalformedReading, MalformedRow, MalformedTimestamp

logger = logging.getLogger(__name__)

BUCKET_MINUTES = 15
_TWO_PLACES = Decimal("0.01")


@dataclass
class AggregationResult:
    """Averaged runs in input order plus the rows that were dropped."""

    readings: List[AggregatedReading] = field(default_factory=list)
    dropped: List[RowIssue] = field(default_factory=list)


def _parse_clock_field(raw: str, field_text: str, upper: int) -> int:
    try:
        number = int(field_text.strip())
    except ValueError as exc:
        raise MalformedTimestamp(raw) from exc
    if not 0 <= number < upper:
        raise MalformedTimestamp(raw)
    return number


def quarter_hour_bucket(time_of_day: Optional[str]) -> int:
    """Return ``minute // 15`` for an ``H:MM[:SS]`` time of day.

    Hour and minute must both be plain integers in range; trailing
    characters such as ``05a`` are rejected rather than truncated.
    """
    if not time_of_day or not time_of_day.strip():
        raise MalformedTimestamp(time_of_day, reason="missing time of day")

    parts = time_of_day.strip().split(":")
    if len(parts) < 2:
        raise MalformedTimestamp(time_of_day)

    _parse_clock_field(time_of_day, parts[0], 24)
    minute = _parse_clock_field(time_of_day, parts[1], 60)
    return minute // BUCKET_MINUTES


def parse_level(level: Optional[str]) -> float:
    """Parse a level written with a comma decimal separator."""
    if not level or not level.strip():
        raise MalformedReading(level, reason="missing level value")

    candidate = level.strip().replace(",", ".", 1)
    try:
        value = float(candidate)
    except ValueError as exc:
        raise MalformedReading(level) from exc
    if not math.isfinite(value):
        raise MalformedReading(level)
    return value


def format_time_label(time_of_day: str) -> str:
    """Truncate ``8:03:27`` style times to ``08:03``."""
    parts = time_of_day.strip().split(":")
    return f"{parts[0].strip().zfill(2)}:{parts[1].strip().zfill(2)}"


def format_mean(values: List[float]) -> str:
    mean = sum(values) / len(values)
    return str(Decimal(mean).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class QuarterHourAverager:
    """Average consecutive readings that fall into the same quarter hour.

    A run is a maximal stretch of consecutive valid rows sharing the same
    bucket key; a key that repeats after a different one starts a new run.
    Intermediate runs are labelled with the date of the row that closed
    them, the final run with the date of the last input row.
    """

    def average(self, rows: Iterable[RawReading]) -> AggregationResult:
        result = AggregationResult()
        current_bucket: Optional[int] = None
        run_start = ""
        values: List[float] = []
        last_date = ""

        for position, row in enumerate(rows, start=1):
            last_date = row.date
            try:
                bucket = quarter_hour_bucket(row.time_of_day)
                value = parse_level(row.level)
            except MalformedRow as exc:
                self._record_issue(result, row.line_number or position, exc)
                continue

            if current_bucket is None:
                current_bucket = bucket
                run_start = row.time_of_day
                values = []

            if bucket == current_bucket:
                values.append(value)
                continue

            result.readings.append(self._close_run(row.date, run_start, values))
            current_bucket = bucket
            run_start = row.time_of_day
            values = [value]

        if values:
            result.readings.append(self._close_run(last_date, run_start, values))

        return result

    @staticmethod
    def _close_run(date: str, run_start: str, values: List[float]) -> AggregatedReading:
        return AggregatedReading(
            date=date,
            time_label=format_time_label(run_start),
            mean_level=format_mean(values),
            sample_count=len(values),
        )

    @staticmethod
    def _record_issue(result: AggregationResult, row_number: int, exc: MalformedRow) -> None:
        result.dropped.append(
            RowIssue(row_number=row_number, reason=exc.reason, raw_value=exc.raw_value)
        )
        logger.warning(
            "Skipping row: %s",
            exc.reason,
            extra={"row_number": row_number, "reason": exc.reason, "raw_value": exc.raw_value},
        )
