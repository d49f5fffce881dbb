"""Base adapter interface for the relational data store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

Filters = Mapping[str, Any]


class DataStore(ABC):
    """Abstract request/response access to the remote tables.

    Filters are equality matches on column values; ``None`` matches SQL
    ``NULL``.
    """

    @abstractmethod
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
        """Return rows of ``table`` matching ``filters``."""

    @abstractmethod
    async def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert ``rows`` and return them as stored (with generated ids)."""

    @abstractmethod
    async def update(
        self, table: str, values: dict[str, Any], filters: Filters
    ) -> list[dict[str, Any]]:
        """Set ``values`` on the rows matching ``filters``."""

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> None:
        """Delete the rows matching ``filters``."""
