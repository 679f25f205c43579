from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 180.0
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def _positive_float_env(name: str, default: float) -> float:
    """Read a positive float from the environment, else ``default``."""
    raw = (os.getenv(name) or "").strip()
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    request_timeout: Optional[float] = None,
) -> CLIConfig:
    """Merge command line options over ``API_BASE_URL``/``CLI_*`` env vars."""
    url = base_url or os.getenv("API_BASE_URL") or DEFAULT_BASE_URL
    return CLIConfig(
        base_url=url.rstrip("/"),
        poll_interval=(
            poll_interval
            if poll_interval is not None
            else _positive_float_env("CLI_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)
        ),
        request_timeout=(
            request_timeout
            if request_timeout is not None
            else _positive_float_env("CLI_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
        ),
    )
