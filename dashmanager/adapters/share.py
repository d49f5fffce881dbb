"""Sharing a territory's images by email through the ``share-territory`` function."""

from __future__ import annotations

import logging

from ..core.validation import email_error
from ..errors import RemoteStoreError, ValidationError
from .supabase import SupabaseAdapter

log = logging.getLogger("dashmanager.share")

SHARE_FUNCTION = "share-territory"


async def share_territory(adapter: SupabaseAdapter, territory_id: str, email: str) -> None:
    """Ask the edge function to email the territory's images to ``email``."""
    message = email_error(email)
    if message:
        raise ValidationError({"email": message})
    payload = {"territory_id": territory_id, "email": email.strip()}
    try:
        result = await adapter.invoke_function(SHARE_FUNCTION, payload)
    except RemoteStoreError:
        log.exception("Sharing territory %s with %s failed", territory_id, email)
        raise
    if isinstance(result, dict) and result.get("error"):
        log.error("share-territory reported: %s", result["error"])
        raise RemoteStoreError(f"share-territory failed: {result['error']}")
    log.info("Shared territory %s with %s", territory_id, email)
