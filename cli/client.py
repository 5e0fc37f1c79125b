from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig

_API_PREFIX = "/api/plant-sensor"


class ApiClient:
    """Minimal HTTP client for the farm monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def reconcile(self) -> List[Dict[str, Any]]:
        return self._get_data(f"{_API_PREFIX}/plant-sensor-data") or []

    def list_records(self) -> List[Dict[str, Any]]:
        return self._get_data(f"{_API_PREFIX}/stored-data") or []

    def get_tray(self, tray_id: str) -> Optional[Dict[str, Any]]:
        """Return the latest record for ``tray_id`` or ``None`` when none is stored."""
        try:
            response = self._client.get(f"{_API_PREFIX}/tray/{tray_id}")
        except httpx.HTTPError as exc:
            self._handle_transport_error(exc)
        if response.status_code == 404:
            return None
        return self._unwrap(response)

    def _get_data(self, path: str) -> Any:
        try:
            response = self._client.get(path)
        except httpx.HTTPError as exc:
            self._handle_transport_error(exc)
        return self._unwrap(response)

    def _unwrap(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        if not isinstance(payload, dict) or "data" not in payload:
            raise typer.BadParameter("Unexpected response payload from the service.")
        return payload["data"]

    @staticmethod
    def _handle_transport_error(exc: httpx.HTTPError) -> None:
        typer.secho(f"Could not reach the service: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("message") or data.get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
