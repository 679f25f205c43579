from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def latest_file(self) -> Optional[str]:
        try:
            response = self._client.get("/api/latest-csv")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        latest = payload.get("latest_file")
        if not isinstance(latest, str):
            raise typer.BadParameter("Unexpected response payload when fetching latest file.")
        return latest

    def get_readings(
        self, sort: Optional[str] = None, direction: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, str] = {}
        if sort:
            params["sort"] = sort
        if direction:
            params["direction"] = direction
        try:
            response = self._client.get("/api/readings", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def refresh(self) -> Dict[str, Any]:
        try:
            response = self._client.post("/api/refresh")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
