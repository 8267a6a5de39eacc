"""
Database client factory for Supabase.

Provides service-role clients (for backend operations bypassing RLS) and
anon-key async clients (for the session core, which acts as the signed-in
user and respects RLS).
"""

from typing import Optional
from supabase import create_client, acreate_client, Client, AsyncClient

from .config import get_settings

# Module-level client cache
_service_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Use this for backend operations that need full database access,
    such as finalizing an invitation on behalf of a verified caller.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


async def create_supabase_async_client() -> AsyncClient:
    """
    Create an async Supabase client with the anon key.

    The session core owns one of these per signed-in browser/session; it is
    not cached because each session manager holds its own auth state.
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
        )
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _service_client
    _service_client = None
