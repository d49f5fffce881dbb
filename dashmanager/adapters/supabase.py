"""Supabase adapter implementing the :class:`~dashmanager.adapters.base.DataStore`.

Tables are reached through PostgREST (``/rest/v1``), password sign-in
through GoTrue (``/auth/v1``) and edge functions through ``/functions/v1``.
All calls go through a single :class:`httpx.AsyncClient`, which callers may
inject for testing.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import RemoteStoreError
from .base import DataStore, Filters

log = logging.getLogger("dashmanager.supabase")


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def filter_params(filters: Filters | None) -> dict[str, str]:
    """Translate equality ``filters`` into PostgREST query parameters."""
    return {column: _filter_value(value) for column, value in (filters or {}).items()}


class SupabaseAdapter(DataStore):
    """Adapter that sends requests directly to a Supabase project."""

    def __init__(
        self,
        url: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Store the project ``url``, anon ``api_key`` and optional HTTP ``client``."""
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.access_token: str | None = None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    # ------------------------------------------------------------------
    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        url = f"{self.url}{path}"
        try:
            response = await self.client.request(
                method, url, params=params, json=json, headers=self._headers(prefer)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise RemoteStoreError(
                f"{method} {path} failed with status {status}",
                status=status,
                detail=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"{method} {path} failed: {exc}") from exc
        log.debug("%s %s -> %s", method, path, response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteStoreError(f"{method} {path} returned malformed JSON") from exc

    # ------------------------------------------------------------------
    # DataStore
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
        params: dict[str, Any] = {"select": columns, **filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        return await self._request("GET", f"/rest/v1/{table}", params=params) or []

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        data = await self._request(
            "POST", f"/rest/v1/{table}", json=rows, prefer="return=representation"
        )
        return data or []

    async def update(
        self, table: str, values: dict[str, Any], filters: Filters
    ) -> list[dict[str, Any]]:
        if not filters:
            raise ValueError("update requires at least one filter")
        data = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=filter_params(filters),
            json=values,
            prefer="return=representation",
        )
        return data or []

    async def delete(self, table: str, filters: Filters) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        await self._request("DELETE", f"/rest/v1/{table}", params=filter_params(filters))

    # ------------------------------------------------------------------
    # Auth, health and functions
    async def sign_in(self, email: str, password: str) -> None:
        """Exchange ``email``/``password`` for a user access token."""
        data = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        token = (data or {}).get("access_token")
        if not token:
            raise RemoteStoreError("Sign-in response did not include an access token")
        self.access_token = token
        log.info("Signed in to Supabase as %s", email)

    async def ping(self) -> None:
        """Raise :class:`RemoteStoreError` unless the ``people`` table is readable."""
        await self.select("people", columns="id", limit=1)

    async def invoke_function(self, name: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` to the edge function ``name`` and return its JSON body."""
        return await self._request("POST", f"/functions/v1/{name}", json=payload)

    async def close(self) -> None:
        """Close the underlying :class:`httpx.AsyncClient`."""
        await self.client.aclose()
