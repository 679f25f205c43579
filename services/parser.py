"""Parsing of semicolon-delimited noise level exports."""

from __future__ import annotations

import csv
from typing import Iterator, List, TextIO

from models.records import RawReading

DELIMITER = ";"
DATE_COLUMN = "datum"
TIME_COLUMN = "systemzeit"
LEVEL_COLUMN = "las"


def parse_readings(stream: TextIO, skip_first_row: bool = True) -> List[RawReading]:
    """Read every data row of an export into :class:`RawReading` objects.

    Header names are matched case-insensitively after stripping, so the
    export's ``"Systemzeit "`` header resolves to the time column. The first
    data row is dropped when ``skip_first_row`` is set, following the export
    convention.
    """
    rows = list(iter_readings(stream))
    if skip_first_row and rows:
        rows.pop(0)
    return rows


def iter_readings(stream: TextIO) -> Iterator[RawReading]:
    reader = csv.DictReader(stream, delimiter=DELIMITER)

    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
    required = {DATE_COLUMN, TIME_COLUMN, LEVEL_COLUMN}
    missing = sorted(required - normalized.keys())
    if missing:
        raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

    date_col = normalized[DATE_COLUMN]
    time_col = normalized[TIME_COLUMN]
    level_col = normalized[LEVEL_COLUMN]

    for row in reader:
        yield RawReading(
            date=(row.get(date_col) or "").strip(),
            time_of_day=(row.get(time_col) or "").strip(),
            level=(row.get(level_col) or "").strip(),
            line_number=reader.line_num,
        )
