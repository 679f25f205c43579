"""Sorting helpers for the readings table."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from models.records import AggregatedReading


class SortKey(str, Enum):
    date = "date"
    time = "time"
    level = "level"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


def _sort_value(reading: AggregatedReading, key: SortKey) -> object:
    if key is SortKey.level:
        return reading.level_value
    if key is SortKey.time:
        return reading.time_label
    return reading.date


def sort_readings(
    readings: Iterable[AggregatedReading],
    key: Optional[SortKey] = None,
    direction: SortDirection = SortDirection.asc,
) -> List[AggregatedReading]:
    """Sort table rows; without a key the incoming order is kept."""
    items = list(readings)
    if key is None:
        return items
    return sorted(
        items,
        key=lambda reading: _sort_value(reading, key),
        reverse=direction is SortDirection.desc,
    )


def next_direction(
    current_key: Optional[SortKey],
    current_direction: SortDirection,
    clicked: SortKey,
) -> SortDirection:
    if current_key is clicked and current_direction is SortDirection.asc:
        return SortDirection.desc
    return SortDirection.asc
