"""Supabase clients.

* ``get_supabase_client``: shared sync client for tables, RPCs and storage.
* ``create_auth_client``: throwaway client per auth flow.
* ``get_async_supabase_client``: async client that owns realtime channels.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Any

from supabase import AsyncClient, Client, acreate_client, create_client
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SyncMemoryStorage

from src.core.config import get_settings

logger = logging.getLogger(__name__)

_async_client: AsyncClient | None = None
_async_client_lock = asyncio.Lock()


@lru_cache
def get_supabase_client() -> Client:
    """Shared client keyed with the secret key.

    Never call auth.set_session() on it; that would leak one user's
    Authorization header into every other request.
    """
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_secret_key)


def create_auth_client() -> Client:
    """Fresh client with in-memory session storage and no token refresh."""
    settings = get_settings()
    options = SyncClientOptions(storage=SyncMemoryStorage(), auto_refresh_token=False, persist_session=False)
    return create_client(settings.supabase_url, settings.supabase_secret_key, options=options)


async def get_async_supabase_client() -> AsyncClient:
    """Created on first subscription; closed by the app lifespan."""
    global _async_client
    async with _async_client_lock:
        if _async_client is None:
            settings = get_settings()
            _async_client = await acreate_client(settings.supabase_url, settings.supabase_secret_key)
            logger.info("Realtime client connected to %s", settings.supabase_url)
    return _async_client


async def close_async_supabase_client() -> None:
    global _async_client
    async with _async_client_lock:
        client, _async_client = _async_client, None
        if client is None:
            return
        try:
            await client.remove_all_channels()
        except Exception as e:
            logger.warning("Could not remove realtime channels: %s", e)
        logger.info("Realtime client closed")


async def check_database_connection() -> dict[str, Any]:
    """Probe Supabase with a one-row read of universities."""
    try:
        get_supabase_client().table("universities").select("id").limit(1).execute()
    except Exception as e:
        return {"healthy": False, "error": str(e)}
    return {"healthy": True}
