"""Readings sources: the Supabase REST table or a local JSON export."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import httpx

from errors import RetrievalError
from settings import Settings, get_settings, require_credentials

logger = logging.getLogger(__name__)


class ReadingsSource(Protocol):
    name: str

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        ...


class SupabaseReadingsSource:
    """Fetch every stored row, oldest first, from a Supabase table."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str,
        order_field: str = "created_at",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.order_field = order_field
        self.name = f"supabase:{table}"
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }
        params = {"select": "*", "order": f"{self.order_field}.asc"}
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(f"/rest/v1/{self.table}", params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise RetrievalError(
                    f"Supabase returned {exc.response.status_code} for table {self.table!r}.",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise RetrievalError(f"Request to Supabase failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RetrievalError("Supabase response was not valid JSON.") from exc
        return _rows_from_payload(payload, self.name)


class JsonFileReadingsSource:
    """Read rows from a JSON export of the table (list or ``{"data": [...]}``)."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.name = f"file:{path}"

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise RetrievalError(f"Could not read readings file {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise RetrievalError(f"Readings file {self.path} is not valid JSON.") from exc
        return _rows_from_payload(payload, self.name)


def _rows_from_payload(payload: Any, source: str) -> List[Dict[str, Any]]:
    if isinstance(payload, dict) and "data" in payload:
        payload = payload["data"]
    if not isinstance(payload, list):
        raise RetrievalError(f"Expected a list of rows from {source}.")
    rows = [row for row in payload if isinstance(row, dict)]
    logger.info(
        "Fetched readings",
        extra={"source": source, "reading_count": len(rows), "dropped_count": len(payload) - len(rows)},
    )
    return rows


def build_source(settings: Settings) -> ReadingsSource:
    """Prefer a configured local export; otherwise require Supabase credentials."""
    if settings.readings_file:
        return JsonFileReadingsSource(Path(settings.readings_file))
    url, key = require_credentials(settings)
    return SupabaseReadingsSource(
        base_url=url,
        api_key=key,
        table=settings.table_name,
        order_field=settings.timestamp_field,
        timeout=settings.fetch_timeout,
    )


@lru_cache
def build_default_source() -> ReadingsSource:
    return build_source(get_settings())
