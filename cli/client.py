from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import httpx
import typer

from cli.config import EXIT_REQUEST_FAILED, CLIConfig


class ApiClient:
    """Minimal HTTP client for the comparison service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.http_timeout)

    def close(self) -> None:
        self._client.close()

    def list_formats(self) -> List[str]:
        try:
            response = self._client.get("/formats")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            self._handle_transport_error(exc)
        formats = response.json().get("formats")
        if not isinstance(formats, list):
            raise typer.BadParameter("Unexpected response payload when listing formats.")
        return formats

    def compare(
        self,
        file1: Path,
        format1: str,
        file2: Path,
        format2: str,
        all_mismatches: bool = False,
    ) -> Dict[str, Any]:
        try:
            with file1.open("rb") as first, file2.open("rb") as second:
                response = self._client.post(
                    "/comparisons",
                    data={
                        "format1": format1,
                        "format2": format2,
                        "all_mismatches": "true" if all_mismatches else "false",
                    },
                    files={
                        "file1": (file1.name, first, "application/octet-stream"),
                        "file2": (file2.name, second, "application/octet-stream"),
                    },
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            self._handle_transport_error(exc)
        payload = response.json()
        if not isinstance(payload, dict) or "status" not in payload:
            raise typer.BadParameter("Unexpected response payload when comparing files.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_REQUEST_FAILED)

    def _handle_transport_error(self, exc: httpx.RequestError) -> None:
        typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_REQUEST_FAILED)
