import os
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from services.aggregator import QuarterHourAverager
from services.dashboard import DashboardService, build_default_dashboard
from storage.csv_directory import CsvDirectory


_EXPORT = """Datum;Systemzeit ;LAS
01.08.2024;21:59:00;10,0
01.08.2024;22:03:00;50,0
01.08.2024;22:07:00;52,0
01.08.2024;22:20:00;44,0
01.08.2024;22:21:00;x
"""


def _write(root: Path, name: str, content: str, mtime: float) -> None:
    path = root / name
    path.write_text(content, encoding="utf-8")
    os.utime(path, (mtime, mtime))


@pytest.fixture
def csv_dir(tmp_path) -> Path:
    root = tmp_path / "csv"
    root.mkdir()
    return root


@pytest.fixture
def api_client(csv_dir, monkeypatch) -> Iterator[TestClient]:
    dashboards: list[DashboardService] = []

    def build_test_dashboard(poll_interval: float | None = None) -> DashboardService:
        if not dashboards:
            dashboards.append(
                DashboardService(
                    directory=CsvDirectory(root_path=csv_dir),
                    averager=QuarterHourAverager(),
                    poll_interval=poll_interval or 3600.0,
                )
            )
        return dashboards[0]

    def cache_clear() -> None:
        while dashboards:
            dashboards.pop().shutdown()

    build_test_dashboard.cache_clear = cache_clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_dashboard", build_test_dashboard)
    monkeypatch.setattr("app.api.build_default_dashboard", build_test_dashboard)
    monkeypatch.setattr("app.web.build_default_dashboard", build_test_dashboard)

    app = create_app()
    with TestClient(app) as client:
        yield client

    cache_clear()


def test_lifespan_starts_and_stops_polling(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("NOISE_CSV_DIR", str(tmp_path))
    from settings import get_settings
    from storage.csv_directory import build_default_directory

    get_settings.cache_clear()
    build_default_directory.cache_clear()
    build_default_dashboard.cache_clear()
    app = create_app()

    try:
        with TestClient(app):
            dashboard_during = build_default_dashboard()
            assert dashboard_during.is_polling

        assert not dashboard_during.is_polling
        assert build_default_dashboard() is not dashboard_during
    finally:
        build_default_dashboard.cache_clear()
        build_default_directory.cache_clear()
        get_settings.cache_clear()


def test_latest_csv_returns_newest_file(api_client: TestClient, csv_dir: Path) -> None:
    _write(csv_dir, "a.csv", _EXPORT, 10)
    _write(csv_dir, "b.csv", _EXPORT, 30)
    _write(csv_dir, "c.txt", _EXPORT, 40)

    response = api_client.get("/api/latest-csv")

    assert response.status_code == 200
    assert response.json() == {"latest_file": "b.csv"}


def test_latest_csv_without_files_returns_not_found(api_client: TestClient) -> None:
    response = api_client.get("/api/latest-csv")

    assert response.status_code == 404


def test_latest_csv_with_unreadable_directory_returns_server_error(
    api_client: TestClient, csv_dir: Path
) -> None:
    csv_dir.rmdir()

    response = api_client.get("/api/latest-csv")

    assert response.status_code == 500
    assert response.json()["detail"] == "Error reading files"


def test_download_csv(api_client: TestClient, csv_dir: Path) -> None:
    _write(csv_dir, "export.csv", _EXPORT, 10)

    response = api_client.get("/csv/export.csv")
    assert response.status_code == 200
    assert response.text == _EXPORT

    assert api_client.get("/csv/missing.csv").status_code == 404


def test_readings_before_any_export_are_empty(api_client: TestClient) -> None:
    response = api_client.get("/api/readings")

    assert response.status_code == 200
    body = response.json()
    assert body["readings"] == []
    assert body["latest"] is None
    assert body["poll_interval"] == 3600.0
    assert body["last_error"]


def test_refresh_then_read_readings(api_client: TestClient, csv_dir: Path) -> None:
    _write(csv_dir, "export.csv", _EXPORT, 10)

    refresh = api_client.post("/api/refresh")
    assert refresh.status_code == 200
    assert refresh.json() == {
        "outcome": "updated",
        "source_file": "export.csv",
        "reading_count": 2,
        "detail": None,
    }

    body = api_client.get("/api/readings").json()
    assert body["source_file"] == "export.csv"
    assert [(r["time"], r["mean_level"], r["status"]) for r in body["readings"]] == [
        ("22:20", "44.00", "elevated"),
        ("22:03", "51.00", "exceeded"),
    ]
    assert body["latest"]["time"] == "22:20"
    assert body["dropped_rows"] == [
        {"row_number": 6, "reason": "invalid level value", "raw_value": "x"}
    ]
    assert body["last_error"] is None


def test_readings_can_be_sorted(api_client: TestClient, csv_dir: Path) -> None:
    _write(csv_dir, "export.csv", _EXPORT, 10)
    api_client.post("/api/refresh")

    body = api_client.get("/api/readings", params={"sort": "level", "direction": "desc"}).json()

    assert [r["mean_level"] for r in body["readings"]] == ["51.00", "44.00"]
    assert body["latest"]["time"] == "22:20"


def test_readings_rejects_unknown_sort_key(api_client: TestClient) -> None:
    response = api_client.get("/api/readings", params={"sort": "volume"})

    assert response.status_code == 422


def test_ui_renders_dashboard(api_client: TestClient, csv_dir: Path) -> None:
    _write(csv_dir, "export.csv", _EXPORT, 10)
    api_client.post("/api/refresh")

    response = api_client.get("/ui", params={"sort": "time", "direction": "asc"})

    assert response.status_code == 200
    assert "Messwerte - Festival" in response.text
    assert "LAS Mittelwert: 44.00 dB (A)" in response.text
    assert "level-exceeded" in response.text
    assert "sort=time&amp;direction=desc" in response.text or "sort=time&direction=desc" in response.text


def test_health(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "polling": "on"}


def test_malformed_hour_is_dropped_and_pages_still_render(api_client: TestClient, csv_dir: Path) -> None:
    _write(
        csv_dir,
        "export.csv",
        "Datum;Systemzeit ;LAS\n01.08.2024;08:00:00;1,0\n01.08.2024;xx:05:00;50,0\n",
        10,
    )
    assert api_client.post("/api/refresh").json()["outcome"] == "updated"

    response = api_client.get("/api/readings")

    assert response.status_code == 200
    body = response.json()
    assert body["readings"] == []
    assert body["dropped_rows"] == [
        {"row_number": 3, "reason": "invalid time of day", "raw_value": "xx:05:00"}
    ]
    assert api_client.get("/ui").status_code == 200
