from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer

_STATUS_COLORS = {
    "ok": typer.colors.GREEN,
    "elevated": typer.colors.YELLOW,
    "exceeded": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _echo_reading(reading: Dict[str, Any]) -> None:
    line = f"  {reading.get('date')}  {reading.get('time')}  {reading.get('mean_level')} dB(A)"
    typer.secho(line, fg=_STATUS_COLORS.get(reading.get("status", "")))


def render_readings(payload: Dict[str, Any], limit: Optional[int] = None) -> None:
    echo_heading("Noise Dashboard")
    echo_key_values(
        [
            ("source_file", payload.get("source_file")),
            ("refreshed_at", payload.get("refreshed_at")),
        ]
    )
    if payload.get("last_error"):
        typer.secho(f"last_error: {payload['last_error']}", fg=typer.colors.YELLOW)

    typer.echo()
    echo_heading("Latest")
    latest = payload.get("latest")
    if latest:
        _echo_reading(latest)
    else:
        typer.echo("No readings available.")

    readings = payload.get("readings") or []
    if limit is not None:
        readings = readings[:limit]
    typer.echo()
    echo_heading("Quarter-hour averages")
    if readings:
        for reading in readings:
            _echo_reading(reading)
    else:
        typer.echo("No readings available.")

    dropped = payload.get("dropped_rows") or []
    typer.echo()
    echo_heading("Dropped rows")
    if dropped:
        for row in dropped:
            typer.echo(f"  - row {row.get('row_number')}: {row.get('reason')}")
    else:
        typer.echo("No rows dropped.")


def render_refresh(payload: Dict[str, Any]) -> None:
    echo_heading("Refresh")
    echo_key_values(
        [
            ("outcome", payload.get("outcome")),
            ("source_file", payload.get("source_file")),
            ("reading_count", payload.get("reading_count")),
        ]
    )
    if payload.get("detail"):
        typer.secho(f"detail: {payload['detail']}", fg=typer.colors.YELLOW)
