"""
Shared pytest fixtures for the AURIA access layer.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from shared.errors import DataStoreError
from shared.metrics import MetricsCollector
from service_gateway.app.main import GatewayService

TEST_TOKEN = "test-token"
NO_ROWS_MESSAGE = "JSON object requested, multiple (or no) rows returned"


class FakeDataStore:
    """In-memory stand-in for SupabaseClient with the same async surface."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.error: Optional[str] = None
        self.ping_exception: Optional[Exception] = None
        self.closed = False

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self.tables.setdefault(table, {})

    def _check(self, operation: str, *args):
        self.calls.append((operation,) + args)
        if self.error is not None:
            raise DataStoreError(self.error)

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
        self._check("select", table, dict(filters or {}), order_by, ascending)
        rows = [
            copy.deepcopy(row)
            for row in self._table(table).values()
            if all(str(row.get(column)) == str(value) for column, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or 0, reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def get(self, table: str, row_id: str) -> Dict[str, Any]:
        self._check("get", table, row_id)
        row = self._table(table).get(row_id)
        if row is None:
            raise DataStoreError(NO_ROWS_MESSAGE)
        return copy.deepcopy(row)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        self._check("insert", table, dict(row))
        if row["id"] in self._table(table):
            raise DataStoreError(f'duplicate key value violates unique constraint "{table}_pkey"')
        self._table(table)[row["id"]] = copy.deepcopy(dict(row))
        return copy.deepcopy(dict(row))

    async def update(self, table: str, row_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        self._check("update", table, row_id, dict(changes))
        row = self._table(table).get(row_id)
        if row is None:
            raise DataStoreError(NO_ROWS_MESSAGE)
        row.update(copy.deepcopy(dict(changes)))
        return copy.deepcopy(row)

    async def delete(self, table: str, row_id: str) -> None:
        self._check("delete", table, row_id)
        self._table(table).pop(row_id, None)

    async def ping(self, table: str) -> None:
        self.calls.append(("ping", table))
        if self.ping_exception is not None:
            raise self.ping_exception
        if self.error is not None:
            raise DataStoreError(self.error)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def data_store():
    return FakeDataStore()


@pytest.fixture
def metrics():
    return MetricsCollector("gateway")


@pytest.fixture
def config():
    return get_config("gateway", gateway_token=TEST_TOKEN, enable_notion_proxy=False)


@pytest.fixture
def gateway(config, data_store, metrics):
    return GatewayService(config, metrics=metrics, data_store=data_store)


@pytest.fixture
def client(gateway):
    return TestClient(gateway.app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
