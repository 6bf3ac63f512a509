"""Supabase record store client (PostgREST over HTTP).

Only partial updates of existing rows are supported. Each call opens its own
connection and holds nothing once it returns.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from license_webhook.config import settings

logger = logging.getLogger(__name__)

_REST_PATH = "/rest/v1"


class RecordStoreError(Exception):
    """Raised when the record store rejects or cannot complete an update."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class UpdateResult:
    """Rows returned by an update (PostgREST return=representation)."""

    table: str
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return len(self.rows)


def _error_message(response: httpx.Response) -> str:
    """Pull the PostgREST error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


class RecordStore:
    """Minimal PostgREST client for the Supabase profiles table."""

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._service_key = service_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def update_where(
        self,
        table: str,
        match_field: str,
        match_value: str,
        fields: dict[str, Any],
    ) -> UpdateResult:
        """Set ``fields`` on every row of ``table`` where ``match_field`` equals ``match_value``.

        Zero matched rows is not an error.

        Raises:
            RecordStoreError: On HTTP error status or transport failure
        """
        if not self._url:
            raise RecordStoreError("SUPABASE_URL is not configured")

        endpoint = f"{self._url}{_REST_PATH}/{table}"
        params = {match_field: f"eq.{match_value}"}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.patch(
                    endpoint, params=params, json=fields, headers=self._headers()
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RecordStoreError(
                _error_message(e.response), status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise RecordStoreError(f"{type(e).__name__}: {e}") from e

        rows = response.json() if response.content else []
        result = UpdateResult(table=table, rows=rows if isinstance(rows, list) else [])
        if result.matched == 0:
            logger.warning(
                "No %s row matched %s=%s, update was a no-op", table, match_field, match_value
            )
        return result


@functools.lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """Process-wide record store built from settings."""
    return RecordStore(
        settings.supabase_url,
        settings.supabase_service_role_key,
        timeout=settings.record_store_timeout,
    )
