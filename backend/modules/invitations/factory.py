"""
Invitation acceptance flow factory.
"""

from typing import Optional

from supabase import AsyncClient

from shared.config import Settings, get_settings
from shared.database import create_supabase_async_client

from modules.auth.interfaces import INavigator
from modules.auth.supabase_provider import SupabaseIdentityProvider

from .client import HttpInvitationFinalizer
from .flow import InvitationAcceptanceFlow
from .repository import SupabaseInvitationStore


async def create_invitation_flow(
    navigator: Optional[INavigator] = None,
    settings: Optional[Settings] = None,
    client: Optional[AsyncClient] = None,
) -> InvitationAcceptanceFlow:
    """
    Create an acceptance flow for the user signed in through an invitation link.

    The finalize call authenticates with the session's current access token.
    """
    settings = settings or get_settings()
    client = client or await create_supabase_async_client()
    provider = SupabaseIdentityProvider(client)
    finalizer = HttpInvitationFinalizer(
        settings.accept_invitation_url,
        timeout=settings.http_timeout_seconds,
        token_provider=provider.access_token,
    )
    return InvitationAcceptanceFlow(
        provider,
        SupabaseInvitationStore(client),
        finalizer,
        navigator=navigator,
        settings=settings,
    )
