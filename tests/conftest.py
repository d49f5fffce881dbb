"""Shared fixtures: an in-memory stand-in for the remote tables."""

from __future__ import annotations

import re
import uuid
from collections import defaultdict
from typing import Any

import pytest

from dashmanager.adapters.base import DataStore, Filters
from dashmanager.data.store import DashStore
from dashmanager.errors import RemoteStoreError

# child table -> foreign key pointing at the parent row
RELATIONS = {
    "group_members": "group_id",
    "location_assignments": "location_id",
    "territory_images": "territory_id",
}
JOIN_TABLES = {"group_members", "location_assignments"}
EMBED_RE = re.compile(r"(\w+)\(([^)]*)\)")


class MemoryDataStore(DataStore):
    """Dict-of-lists tables with PostgREST-style embedding.

    ``calls`` records every ``(operation, table)`` pair and ``fail_on``
    makes chosen pairs raise :class:`RemoteStoreError`.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[tuple[str, str]] = set()

    def _check(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        if (op, table) in self.fail_on:
            raise RemoteStoreError(f"{op} on {table} refused", status=500)

    @staticmethod
    def _match(row: dict[str, Any], filters: Filters | None) -> bool:
        return all(row.get(k) == v for k, v in (filters or {}).items())

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self._check("select", table)
        rows = [dict(r) for r in self.tables[table] if self._match(r, filters)]
        for relation, cols in EMBED_RE.findall(columns):
            fk = RELATIONS[relation]
            wanted = [c.strip() for c in cols.split(",")]
            for row in rows:
                children = [c for c in self.tables[relation] if c.get(fk) == row["id"]]
                row[relation] = [
                    dict(c) if wanted == ["*"] else {k: c.get(k) for k in wanted}
                    for c in children
                ]
        if order:
            rows.sort(key=lambda r: r.get(order) or "", reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        self._check("insert", table)
        stored = []
        for row in rows:
            row = dict(row)
            if table not in JOIN_TABLES:
                row.setdefault("id", uuid.uuid4().hex)
            self.tables[table].append(row)
            stored.append(dict(row))
        return stored

    async def update(
        self, table: str, values: dict[str, Any], filters: Filters
    ) -> list[dict[str, Any]]:
        self._check("update", table)
        changed = []
        for row in self.tables[table]:
            if self._match(row, filters):
                row.update(values)
                changed.append(dict(row))
        return changed

    async def delete(self, table: str, filters: Filters) -> None:
        self._check("delete", table)
        self.tables[table] = [r for r in self.tables[table] if not self._match(r, filters)]


@pytest.fixture
def remote() -> MemoryDataStore:
    return MemoryDataStore()


@pytest.fixture
def store(remote: MemoryDataStore) -> DashStore:
    return DashStore(remote)
