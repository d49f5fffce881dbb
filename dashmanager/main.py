from __future__ import annotations

import asyncio
import logging

from .adapters.supabase import SupabaseAdapter
from .config import Settings, load_settings, validate_settings
from .core.storage import LocalStore
from .data.state import EntityState
from .data.store import DashStore
from .errors import ConfigurationError, RemoteStoreError
from .logging_config import setup_logging


async def connect(settings: Settings) -> SupabaseAdapter:
    """Open an adapter and make sure the store answers, or raise ConfigurationError."""
    adapter = SupabaseAdapter(
        settings.supabase_url, settings.supabase_key, timeout=settings.timeout_seconds
    )
    try:
        if settings.supabase_email:
            await adapter.sign_in(settings.supabase_email, settings.supabase_password)
        await adapter.ping()
    except RemoteStoreError as exc:
        await adapter.close()
        raise ConfigurationError(f"Supabase is unreachable: {exc}") from exc
    return adapter


async def run(settings: Settings, log: logging.Logger) -> int:
    adapter: SupabaseAdapter | None = None
    store: EntityState
    if settings.remote_configured:
        try:
            adapter = await connect(settings)
        except ConfigurationError as exc:
            log.error("%s", exc)
            return 2
        store = DashStore(adapter)
    else:
        log.warning(
            "SUPABASE_URL is not set; using local storage at %s", settings.data_path
        )
        store = LocalStore(settings.data_path, max_entities=settings.max_entities)

    try:
        await store.load()
    finally:
        if adapter is not None:
            await adapter.close()

    stats = store.stats()
    log.info(
        "%d people, %d groups, %d locations (%d/%d visited, %d%%), %d territories",
        stats.people,
        stats.groups,
        stats.locations,
        stats.visited_locations,
        stats.locations,
        stats.visited_percent,
        stats.territories,
    )
    return 0


def main() -> int:
    log = setup_logging()
    settings = load_settings()
    try:
        validate_settings(settings)
    except ConfigurationError as exc:
        log.error("%s", exc)
        return 2
    try:
        return asyncio.run(run(settings, log))
    except KeyboardInterrupt:
        log.info("Shutting down...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
