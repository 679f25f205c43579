from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from app.schemas import DashboardResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_readings, render_refresh
from models.records import DashboardSnapshot
from services.aggregator import QuarterHourAverager
from services.parser import parse_readings
from services.table import SortDirection, SortKey, sort_readings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for inspecting noise level dashboards and exports.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between refreshes for the watch command.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        request_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Print the name of the newest CSV export."""
    state = _get_state(ctx)
    latest = state.client.latest_file()
    if latest is None:
        typer.secho("No CSV export found.", fg=typer.colors.YELLOW)
        return
    typer.echo(latest)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    sort: Optional[SortKey] = typer.Option(None, "--sort", help="Column to sort by."),
    direction: SortDirection = typer.Option(SortDirection.asc, "--direction", help="Sort direction."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N rows."),
) -> None:
    """Show the quarter-hour averages currently on the dashboard."""
    state = _get_state(ctx)
    payload = state.client.get_readings(
        sort=sort.value if sort else None,
        direction=direction.value,
    )
    render_readings(payload, limit=limit)


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Ask the server to reload the newest export now."""
    state = _get_state(ctx)
    render_refresh(state.client.refresh())


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: int = typer.Option(0, "--count", min=0, help="Stop after N refreshes (0 runs forever)."),
    limit: Optional[int] = typer.Option(5, "--limit", min=1, help="Rows shown per refresh."),
) -> None:
    """Re-render the dashboard every poll interval."""
    state = _get_state(ctx)
    shown = 0
    while True:
        render_readings(state.client.get_readings(), limit=limit)
        shown += 1
        if count and shown >= count:
            return
        typer.echo()
        time.sleep(state.config.poll_interval)


@app.command("aggregate")
def aggregate_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV export."),
    keep_first_row: bool = typer.Option(
        False,
        "--keep-first-row/--skip-first-row",
        help="Keep the first data row, which exports usually repeat.",
    ),
    encoding: str = typer.Option("utf-8-sig", "--encoding", help="Text encoding of the export."),
    sort: Optional[SortKey] = typer.Option(None, "--sort", help="Column to sort by."),
    direction: SortDirection = typer.Option(SortDirection.asc, "--direction", help="Sort direction."),
) -> None:
    """Average a local export without contacting the server."""
    try:
        with file.open("r", encoding=encoding, newline="") as handle:
            rows = parse_readings(handle, skip_first_row=not keep_first_row)
    except (UnicodeDecodeError, ValueError) as exc:
        typer.secho(f"Could not parse {file}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    result = QuarterHourAverager().average(rows)
    snapshot = DashboardSnapshot(
        source_file=file.name,
        refreshed_at=datetime.now(timezone.utc),
        readings=tuple(reversed(result.readings)),
        dropped=tuple(result.dropped),
    )
    payload = DashboardResponse.build(
        snapshot,
        sort_readings(snapshot.readings, sort, direction),
        poll_interval=0,
    )
    render_readings(payload.model_dump(mode="json"))
