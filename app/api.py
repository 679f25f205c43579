"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from app.schemas import DashboardResponse, LatestFileResponse, RefreshResponse
from services.dashboard import DashboardService, RefreshOutcome, build_default_dashboard
from services.errors import DirectoryUnreadable, NoQualifyingFile
from services.table import SortDirection, SortKey, sort_readings

router = APIRouter()


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


@router.get(
    "/api/latest-csv",
    response_model=LatestFileResponse,
    summary="Name of the most recently modified CSV export.",
)
async def latest_csv(
    dashboard: DashboardService = Depends(get_dashboard),
) -> LatestFileResponse:
    try:
        latest_file = dashboard.directory.latest_file()
    except NoQualifyingFile as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except DirectoryUnreadable as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error reading files",
        ) from exc
    return LatestFileResponse(latest_file=latest_file)


@router.get(
    "/csv/{file_name}",
    response_class=FileResponse,
    summary="Download a raw CSV export.",
)
async def download_csv(
    file_name: str,
    dashboard: DashboardService = Depends(get_dashboard),
) -> FileResponse:
    try:
        path = dashboard.directory.resolve(file_name)
    except NoQualifyingFile as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return FileResponse(path, media_type="text/csv", filename=file_name)


@router.get(
    "/api/readings",
    response_model=DashboardResponse,
    summary="Quarter-hour averages from the latest refresh.",
)
async def readings(
    sort: Optional[SortKey] = Query(None, description="Column to sort the table by."),
    direction: SortDirection = Query(SortDirection.asc),
    dashboard: DashboardService = Depends(get_dashboard),
) -> DashboardResponse:
    snapshot = dashboard.snapshot()
    rows = sort_readings(snapshot.readings, sort, direction) if snapshot else []
    return DashboardResponse.build(
        snapshot,
        rows,
        poll_interval=dashboard.poll_interval,
        last_error=dashboard.last_error,
    )


@router.post(
    "/api/refresh",
    response_model=RefreshResponse,
    summary="Run a refresh cycle immediately.",
)
def refresh(
    dashboard: DashboardService = Depends(get_dashboard),
) -> RefreshResponse:
    outcome = dashboard.refresh()
    snapshot = dashboard.snapshot()
    return RefreshResponse(
        outcome=outcome,
        source_file=snapshot.source_file if snapshot else None,
        reading_count=len(snapshot.readings) if snapshot else 0,
        detail=dashboard.last_error if outcome is not RefreshOutcome.updated else None,
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    dashboard: DashboardService = Depends(get_dashboard),
) -> dict[str, str]:
    return {"status": "ok", "polling": "on" if dashboard.is_polling else "off"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard."}
