"""
Async Supabase (PostgREST) client used by the Gateway's resource routers.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from shared.errors import DataStoreError
from shared.logging import get_logger

PLACEHOLDER_URL = "https://placeholder.supabase.co"
PLACEHOLDER_KEY = "placeholder"

# Ask PostgREST for a single JSON object instead of an array; zero or many
# matching rows then come back as an error.
OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class SupabaseClient:
    """Lightweight async client for the Supabase REST interface.

    Rows are plain dictionaries. Every failure, whether an HTTP error status
    or a transport problem, surfaces as ``DataStoreError`` carrying the
    backend's own message.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("gateway.supabase")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
            },
        )

    @classmethod
    def from_config(cls, config, **kwargs) -> "SupabaseClient":
        """Build a client from service config, falling back to a placeholder.

        The placeholder keeps the process bootable without credentials; data
        routes then fail with the transport error.
        """
        logger = get_logger("gateway.supabase")
        base_url = config.supabase_url
        service_key = config.supabase_service_key
        if not base_url or not service_key:
            logger.warning("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY, DB calls will fail")
        return cls(
            base_url or PLACEHOLDER_URL,
            service_key or PLACEHOLDER_KEY,
            timeout=config.data_store_timeout,
            **kwargs,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    @staticmethod
    def _eq(value: Any) -> str:
        return f"eq.{value}"

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                f"/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            self.logger.error("Supabase request failed", method=method, table=table, error=str(exc))
            raise DataStoreError(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            message = self._error_message(response)
            self.logger.warning(
                "Supabase returned an error",
                method=method,
                table=table,
                status_code=response.status_code,
                message=message,
            )
            raise DataStoreError(message, upstream_status=response.status_code)

        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            for key in ("message", "error", "msg"):
                if body.get(key):
                    return str(body[key])

        return response.text or f"HTTP {response.status_code}"

    async def select(
        self,
        table: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Return the rows matching every equality filter."""
        params: Dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = self._eq(value)
        if order_by:
            params["order"] = f"{order_by}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = limit

        response = await self._request("GET", table, params=params)
        return response.json()

    async def get(self, table: str, row_id: str) -> Dict[str, Any]:
        """Return exactly one row by id."""
        response = await self._request(
            "GET",
            table,
            params={"select": "*", "id": self._eq(row_id)},
            headers={"Accept": OBJECT_MEDIA_TYPE},
        )
        return response.json()

    async def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a row and return it as stored."""
        response = await self._request(
            "POST",
            table,
            params={"select": "*"},
            json=dict(row),
            headers={"Accept": OBJECT_MEDIA_TYPE, "Prefer": "return=representation"},
        )
        return response.json()

    async def update(self, table: str, row_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge ``changes`` into the row and return the result."""
        response = await self._request(
            "PATCH",
            table,
            params={"select": "*", "id": self._eq(row_id)},
            json=dict(changes),
            headers={"Accept": OBJECT_MEDIA_TYPE, "Prefer": "return=representation"},
        )
        return response.json()

    async def delete(self, table: str, row_id: str) -> None:
        """Delete by id. Deleting a missing id is not an error."""
        await self._request(
            "DELETE",
            table,
            params={"id": self._eq(row_id)},
            headers={"Prefer": "return=minimal"},
        )

    async def ping(self, table: str) -> None:
        """Run the cheapest possible query. Raises DataStoreError on failure."""
        await self.select(table, columns="id", limit=1)
