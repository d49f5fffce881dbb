"""Postal code (CEP) lookup used to prefill location addresses.

The lookup talks to the public ViaCEP API. It never raises for a bad or
unknown code; callers inspect :attr:`PostalLookup.error` instead and keep
whatever address they already had.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger("dashmanager.postal")


class PostalAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str = Field(alias="cep")
    street: str = Field(default="", alias="logradouro")
    complement: str = Field(default="", alias="complemento")
    neighborhood: str = Field(default="", alias="bairro")
    city: str = Field(default="", alias="localidade")
    state: str = Field(default="", alias="uf")


@dataclass(frozen=True)
class PostalLookup:
    address: PostalAddress | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.address is not None and self.error is None


def normalize_postal_code(value: str) -> str:
    return re.sub(r"\D", "", value)


def format_address(
    address: PostalAddress, number: str | None = None, complement: str | None = None
) -> str:
    """``street, number, complement, neighborhood, city - state, code``; blanks skipped."""
    parts = [
        address.street,
        number,
        complement,
        address.neighborhood,
        f"{address.city} - {address.state}",
        address.code,
    ]
    return ", ".join(p for p in parts if p)


def prefill_address(
    current: str,
    lookup: PostalLookup,
    number: str | None = None,
    complement: str | None = None,
) -> str:
    """Address to show after ``lookup``; ``current`` is kept when it failed."""
    if not lookup.ok:
        return current
    return format_address(lookup.address, number, complement)


class PostalCodeClient:
    """Async client for the ViaCEP lookup service."""

    api_base = "https://viacep.com.br/ws"

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.client = client or httpx.AsyncClient()

    async def lookup(self, code: str) -> PostalLookup:
        digits = normalize_postal_code(code)
        if len(digits) != 8:
            return PostalLookup(error="Postal code must have 8 digits.")
        try:
            response = await self.client.get(f"{self.api_base}/{digits}/json/")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("Postal code lookup for %s failed: %s", digits, exc)
            return PostalLookup(error="Postal code lookup failed.")
        # ViaCEP answers unknown codes with {"erro": true} (or "true")
        if not isinstance(data, dict) or data.get("erro"):
            return PostalLookup(error="Postal code not found.")
        return PostalLookup(address=PostalAddress.model_validate(data))

    async def close(self) -> None:
        await self.client.aclose()
