"""Refresh cycle and polling for the noise dashboard."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Optional

from models.records import DashboardSnapshot
from services.aggregator import QuarterHourAverager
from services.errors import DirectoryUnreadable, FetchFailure, NoQualifyingFile
from services.parser import parse_readings
from settings import get_settings
from storage.csv_directory import CsvDirectory, build_default_directory

logger = logging.getLogger(__name__)


class RefreshOutcome(str, Enum):
    updated = "updated"
    no_file = "no_file"
    failed = "failed"


class DashboardService:
    """Owns the current snapshot and replaces it on every successful refresh."""

    def __init__(
        self,
        directory: CsvDirectory,
        averager: QuarterHourAverager,
        poll_interval: float = 180.0,
        skip_first_row: bool = True,
    ) -> None:
        self.directory = directory
        self.averager = averager
        self.poll_interval = poll_interval
        self.skip_first_row = skip_first_row
        self._snapshot: Optional[DashboardSnapshot] = None
        self._last_error: Optional[str] = None
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def snapshot(self) -> Optional[DashboardSnapshot]:
        with self._state_lock:
            return self._snapshot

    @property
    def last_error(self) -> Optional[str]:
        with self._state_lock:
            return self._last_error

    def refresh(self) -> RefreshOutcome:
        """Run one refresh cycle; failures keep the previous snapshot."""
        start_time = time.perf_counter()
        try:
            snapshot = self.load_snapshot()
        except NoQualifyingFile as exc:
            logger.info(
                "No export available yet",
                extra={"directory": str(self.directory.root_path), "outcome": RefreshOutcome.no_file.value},
            )
            self._set_error(str(exc))
            return RefreshOutcome.no_file
        except FetchFailure as exc:
            logger.warning(
                "Refresh failed, keeping previous data: %s",
                exc,
                extra={"directory": str(self.directory.root_path), "outcome": RefreshOutcome.failed.value},
            )
            self._set_error(str(exc))
            return RefreshOutcome.failed

        with self._state_lock:
            self._snapshot = snapshot
            self._last_error = None

        logger.info(
            "Dashboard refreshed",
            extra={
                "file_name": snapshot.source_file,
                "outcome": RefreshOutcome.updated.value,
                "reading_count": len(snapshot.readings),
                "dropped_count": len(snapshot.dropped),
                "refresh_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return RefreshOutcome.updated

    def load_snapshot(self) -> DashboardSnapshot:
        """Select the newest export and aggregate it into a snapshot."""
        try:
            file_name = self.directory.latest_file()
            with self.directory.open_text(file_name) as handle:
                rows = parse_readings(handle, skip_first_row=self.skip_first_row)
        except NoQualifyingFile:
            raise
        except DirectoryUnreadable as exc:
            raise FetchFailure(str(exc)) from exc
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise FetchFailure(f"Could not read export: {exc}") from exc

        result = self.averager.average(rows)
        return DashboardSnapshot(
            source_file=file_name,
            refreshed_at=datetime.now(timezone.utc),
            readings=tuple(reversed(result.readings)),
            dropped=tuple(result.dropped),
        )

    def start(self) -> None:
        """Refresh once, then keep polling on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self.refresh()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="dashboard-poller", daemon=True
        )
        self._thread.start()

    def shutdown(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=5)
        self._thread = None

    @property
    def is_polling(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.refresh()

    def _set_error(self, message: str) -> None:
        with self._state_lock:
            self._last_error = message


@lru_cache
def build_default_dashboard(poll_interval: Optional[float] = None) -> DashboardService:
    """Factory that wires the dashboard with the configured directory."""
    settings = get_settings()
    return DashboardService(
        directory=build_default_directory(),
        averager=QuarterHourAverager(),
        poll_interval=poll_interval or settings.poll_interval,
        skip_first_row=settings.skip_first_row,
    )
