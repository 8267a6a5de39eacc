"""
Session manager factory.

Wires the session core to Supabase for a client process.
"""

from typing import Optional

from supabase import AsyncClient

from shared.config import Settings
from shared.database import create_supabase_async_client

from .interfaces import INavigator
from .session import SessionManager
from .supabase_provider import SupabaseIdentityProvider, SupabaseProfileStore


async def create_session_manager(
    navigator: Optional[INavigator] = None,
    settings: Optional[Settings] = None,
    client: Optional[AsyncClient] = None,
) -> SessionManager:
    """
    Create a SessionManager backed by Supabase Auth and the profiles table.

    Args:
        navigator: Receives redirects (sign-out goes to the login path)
        settings: Overrides the cached settings
        client: Existing async client; a new anon-key client is created if omitted

    Returns:
        An unstarted SessionManager; call ``start()`` or use ``async with``
    """
    client = client or await create_supabase_async_client()
    return SessionManager(
        SupabaseIdentityProvider(client),
        SupabaseProfileStore(client),
        navigator=navigator,
        settings=settings,
    )
