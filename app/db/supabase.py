"""Supabase async client singleton.

Provides ``get_supabase()`` which returns a lazily-initialized, process-wide
async Supabase client using credentials from ``settings``.
"""

from supabase import AsyncClient, acreate_client

from app.core.config import settings

_client: AsyncClient | None = None


async def get_supabase() -> AsyncClient:
    """Return the singleton Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client
