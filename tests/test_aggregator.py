"""Unit tests for the quarter-hour averaging logic."""

from __future__ import annotations

import logging

import pytest

from models.records import RawReading
from services.aggregator import (
    QuarterHourAverager,
    format_mean,
    format_time_label,
    parse_level,
    quarter_hour_bucket,
)
from services.errors import MalformedReading, MalformedTimestamp


def _row(time_of_day: str, level: str, date: str = "01.08.2024") -> RawReading:
    """Helper to build export rows."""

    return RawReading(date=date, time_of_day=time_of_day, level=level)


def test_average_empty_input_returns_empty_result() -> None:
    result = QuarterHourAverager().average([])

    assert result.readings == []
    assert result.dropped == []


def test_average_splits_runs_on_bucket_change() -> None:
    rows = [
        _row("08:03:00", "50,0"),
        _row("08:07:00", "52,0"),
        _row("08:20:00", "48,0"),
    ]

    result = QuarterHourAverager().average(rows)

    assert [(r.time_label, r.mean_level) for r in result.readings] == [
        ("08:03", "51.00"),
        ("08:20", "48.00"),
    ]
    assert [r.sample_count for r in result.readings] == [2, 1]


def test_repeated_bucket_key_after_change_starts_new_run() -> None:
    rows = [
        _row("08:01:00", "40,0"),
        _row("08:16:00", "50,0"),
        _row("09:02:00", "60,0"),
        _row("09:05:00", "62,0"),
    ]

    result = QuarterHourAverager().average(rows)

    assert [(r.time_label, r.mean_level) for r in result.readings] == [
        ("08:01", "40.00"),
        ("08:16", "50.00"),
        ("09:02", "61.00"),
    ]


def test_intermediate_runs_use_closing_row_date_and_final_run_last_row_date() -> None:
    rows = [
        _row("23:50:00", "45,0", date="01.08.2024"),
        _row("00:01:00", "44,0", date="02.08.2024"),
        _row("00:02:00", "oops", date="03.08.2024"),
    ]

    result = QuarterHourAverager().average(rows)

    assert [(r.date, r.time_label) for r in result.readings] == [
        ("02.08.2024", "23:50"),
        ("03.08.2024", "00:01"),
    ]


def test_invalid_level_does_not_alter_run() -> None:
    rows = [
        _row("10:00:00", "50,0"),
        _row("10:20:00", ""),
        _row("10:05:00", "54,0"),
    ]

    result = QuarterHourAverager().average(rows)

    assert len(result.readings) == 1
    assert result.readings[0].mean_level == "52.00"
    assert result.readings[0].sample_count == 2
    assert [(issue.row_number, issue.reason) for issue in result.dropped] == [
        (2, "missing level value"),
    ]


def test_invalid_first_level_does_not_open_run() -> None:
    rows = [
        _row("10:14:00", "x"),
        _row("10:16:00", "50,0"),
    ]

    result = QuarterHourAverager().average(rows)

    assert [(r.time_label, r.mean_level) for r in result.readings] == [("10:16", "50.00")]


def test_malformed_times_are_dropped_with_reasons() -> None:
    rows = [
        _row("", "50,0"),
        _row("1015", "50,0"),
        _row("10:xx:00", "50,0"),
        _row("10:30:00", "55,5"),
    ]

    result = QuarterHourAverager().average(rows)

    assert [(r.time_label, r.mean_level) for r in result.readings] == [("10:30", "55.50")]
    reasons = [issue.reason for issue in result.dropped]
    assert reasons == ["missing time of day", "invalid time of day", "invalid time of day"]


def test_line_numbers_are_preferred_for_dropped_rows() -> None:
    rows = [RawReading(date="d", time_of_day="bad", level="1,0", line_number=7)]

    result = QuarterHourAverager().average(rows)

    assert result.dropped[0].row_number == 7
    assert result.dropped[0].raw_value == "bad"
    assert result.readings == []


def test_output_length_matches_run_count() -> None:
    times = ["00:01", "00:02", "00:20", "00:31", "00:44", "00:46", "00:59", "01:00"]
    rows = [_row(t, "40,0") for t in times]

    result = QuarterHourAverager().average(rows)

    # buckets 0,0,1,2,2,3,3,0 form five runs
    assert len(result.readings) == 5


def test_average_is_deterministic() -> None:
    rows = [_row("12:00:00", "49,3"), _row("12:10:00", "51,1"), _row("12:15:00", "47,0")]
    averager = QuarterHourAverager()

    assert averager.average(rows) == averager.average(rows)


def test_skipped_rows_are_logged(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        QuarterHourAverager().average([_row("12:00:00", "n/a")])

    records = [record for record in caplog.records if record.name == "services.aggregator"]
    assert records
    assert "Skipping row" in records[0].getMessage()
    assert getattr(records[0], "reason") == "invalid level value"
    assert getattr(records[0], "raw_value") == "n/a"


@pytest.mark.parametrize(
    ("time_of_day", "bucket"),
    [("8:00:00", 0), ("8:14:59", 0), ("8:15:00", 1), ("8:44", 2), ("23:59:59", 3)],
)
def test_quarter_hour_bucket(time_of_day: str, bucket: int) -> None:
    assert quarter_hour_bucket(time_of_day) == bucket


def test_quarter_hour_bucket_rejects_out_of_range_minute() -> None:
    with pytest.raises(MalformedTimestamp):
        quarter_hour_bucket("10:75:00")


def test_parse_level_accepts_comma_and_period() -> None:
    assert parse_level("52,7") == pytest.approx(52.7)
    assert parse_level("52.7") == pytest.approx(52.7)


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "nan", "inf"])
def test_parse_level_rejects_non_numeric(raw) -> None:
    with pytest.raises(MalformedReading):
        parse_level(raw)


def test_format_time_label_pads_and_truncates() -> None:
    assert format_time_label("8:3:27") == "08:03"
    assert format_time_label("14:45:00") == "14:45"


def test_format_mean_rounds_half_up() -> None:
    assert format_mean([50.0, 52.0]) == "51.00"
    assert format_mean([1.0, 2.0, 2.0]) == "1.67"
    assert format_mean([0.375]) == "0.38"


@pytest.mark.parametrize("time_of_day", ["xx:05:00", "24:05:00", "-1:05:00", "08:05a:00"])
def test_quarter_hour_bucket_rejects_bad_clock_fields(time_of_day: str) -> None:
    with pytest.raises(MalformedTimestamp):
        quarter_hour_bucket(time_of_day)


def test_non_numeric_hour_is_dropped_instead_of_labelled() -> None:
    rows = [_row("xx:05:00", "50,0"), _row("08:06:00", "52,0")]

    result = QuarterHourAverager().average(rows)

    assert [(r.time_label, r.mean_level) for r in result.readings] == [("08:06", "52.00")]
    assert [(issue.row_number, issue.reason, issue.raw_value) for issue in result.dropped] == [
        (1, "invalid time of day", "xx:05:00"),
    ]
