from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.records import AggregatedReading, DashboardSnapshot
from services.dashboard import DashboardService, build_default_dashboard
from services.table import SortDirection, SortKey, next_direction, sort_readings
from services.thresholds import STATUS_CSS_CLASSES, STATUS_EMOJI, classify_level


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

_COLUMNS = (
    (SortKey.date, "Datum"),
    (SortKey.time, "Systemzeit"),
    (SortKey.level, "LAS Mittelwert"),
)
_SORT_ICONS = {SortDirection.asc: "▲", SortDirection.desc: "▼"}
_UNSORTED_ICON = "◇"


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


def _row_context(reading: AggregatedReading) -> Dict[str, Any]:
    status = classify_level(reading.time_label, reading.level_value)
    return {
        "date": reading.date,
        "time": reading.time_label,
        "mean_level": reading.mean_level,
        "css_class": STATUS_CSS_CLASSES[status],
        "emoji": STATUS_EMOJI[status],
    }


def build_page_context(
    snapshot: Optional[DashboardSnapshot],
    sort: Optional[SortKey],
    direction: SortDirection,
) -> Dict[str, Any]:
    """Turn a snapshot into plain template values."""
    headers: List[Dict[str, Any]] = []
    for key, label in _COLUMNS:
        icon = _SORT_ICONS[direction] if key is sort else _UNSORTED_ICON
        headers.append(
            {
                "label": label,
                "key": key.value,
                "next_direction": next_direction(sort, direction, key).value,
                "icon": icon,
            }
        )

    if snapshot is None:
        return {
            "headers": headers,
            "latest": None,
            "rows": [],
            "chart_labels": [],
            "chart_values": [],
            "source_file": None,
            "refreshed_at": None,
            "dropped_count": 0,
        }

    chronological = snapshot.chronological()
    latest = snapshot.latest
    return {
        "headers": headers,
        "latest": _row_context(latest) if latest is not None else None,
        "rows": [_row_context(reading) for reading in sort_readings(snapshot.readings, sort, direction)],
        "chart_labels": [reading.time_label for reading in chronological],
        "chart_values": [reading.level_value for reading in chronological],
        "source_file": snapshot.source_file,
        "refreshed_at": snapshot.refreshed_at,
        "dropped_count": len(snapshot.dropped),
    }


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    sort: Optional[SortKey] = Query(None),
    direction: SortDirection = Query(SortDirection.asc),
    dashboard: DashboardService = Depends(get_dashboard),
) -> HTMLResponse:
    context = build_page_context(dashboard.snapshot(), sort, direction)
    context.update(
        {
            "poll_interval": int(dashboard.poll_interval),
            "last_error": dashboard.last_error,
        }
    )
    return templates.TemplateResponse(request, "ui/index.html", context)
