from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_CSV_DIR_ENV = "NOISE_CSV_DIR"
_CSV_SUFFIX_ENV = "NOISE_CSV_SUFFIX"
_EXCLUDED_PREFIX_ENV = "NOISE_EXCLUDED_PREFIX"
_CSV_ENCODING_ENV = "NOISE_CSV_ENCODING"
_SKIP_FIRST_ROW_ENV = "NOISE_SKIP_FIRST_ROW"
_POLL_INTERVAL_ENV = "DASHBOARD_POLL_INTERVAL_SECONDS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    csv_dir: str
    csv_suffix: str
    excluded_prefix: str
    csv_encoding: str
    skip_first_row: bool
    poll_interval: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_poll_interval(default: float) -> float:
    value = os.getenv(_POLL_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        csv_dir=_read_str_env(_CSV_DIR_ENV, "./public/csv"),
        csv_suffix=_read_str_env(_CSV_SUFFIX_ENV, ".csv"),
        excluded_prefix=_read_str_env(_EXCLUDED_PREFIX_ENV, "_gsdata_"),
        csv_encoding=_read_str_env(_CSV_ENCODING_ENV, "utf-8-sig"),
        skip_first_row=_read_bool_env(_SKIP_FIRST_ROW_ENV, True),
        poll_interval=_read_poll_interval(180.0),
        log_level=_read_log_level("INFO"),
    )
