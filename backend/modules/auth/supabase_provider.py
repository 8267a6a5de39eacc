"""
Supabase-backed identity provider and profile store.

Thin adapters from the async Supabase client to the auth module's
interfaces. They translate provider objects into ``Identity``/``AuthSession``
and wrap every failure in the module's exception types; validation of what
comes back happens in the session manager, not here.
"""

import asyncio
import logging
from typing import Any, Optional

from supabase import AsyncClient, Client

from shared.models import Identity
from shared.repository import BaseRepository

from .exceptions import IdentityProviderError, ProfileStoreError
from .interfaces import AuthChangeCallback, IIdentityProvider, IProfileStore, Unsubscribe
from .models import AuthSession

logger = logging.getLogger(__name__)


def _provider_error(error: Exception) -> IdentityProviderError:
    code = getattr(error, "code", None)
    return IdentityProviderError(
        getattr(error, "message", None) or str(error),
        code=str(code) if code else "IDENTITY_PROVIDER_ERROR",
    )


class SupabaseIdentityProvider(IIdentityProvider):
    """Identity provider backed by Supabase Auth."""

    def __init__(self, client: AsyncClient):
        self._client = client
        self._dispatches: set[asyncio.Task] = set()

    async def get_session(self) -> Optional[Identity]:
        try:
            session = await self._client.auth.get_session()
        except Exception as e:
            raise _provider_error(e)
        if session is None or session.user is None:
            return None
        return Identity.from_provider(session.user)

    async def access_token(self) -> Optional[str]:
        """Current session's access token, for calls made on the user's behalf."""
        try:
            session = await self._client.auth.get_session()
        except Exception as e:
            raise _provider_error(e)
        return getattr(session, "access_token", None) if session else None

    def on_auth_state_change(self, callback: AuthChangeCallback) -> Unsubscribe:
        """
        Forward Supabase auth events to an async callback.

        Supabase invokes subscribers synchronously; each event is scheduled
        as its own task on the running loop.
        """

        def dispatch(event: Any, session: Any) -> None:
            logger.debug("Supabase auth event %s", event)
            user = getattr(session, "user", None)
            identity = Identity.from_provider(user) if user is not None else None
            task = asyncio.ensure_future(callback(str(event), identity))
            self._dispatches.add(task)
            task.add_done_callback(self._dispatches.discard)

        subscription = self._client.auth.on_auth_state_change(dispatch)
        return subscription.unsubscribe

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise _provider_error(e)

        if response.user is None:
            raise IdentityProviderError("No user returned", code="NO_USER")

        session = response.session
        return AuthSession(
            user=Identity.from_provider(response.user),
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
        )

    async def sign_out(self) -> None:
        try:
            await self._client.auth.sign_out()
        except Exception as e:
            raise _provider_error(e)

    async def update_user(self, *, password: str) -> Identity:
        try:
            response = await self._client.auth.update_user({"password": password})
        except Exception as e:
            raise _provider_error(e)
        return Identity.from_provider(response.user)

    async def get_user(self) -> Optional[Identity]:
        try:
            response = await self._client.auth.get_user()
        except Exception as e:
            raise _provider_error(e)
        if response is None or response.user is None:
            return None
        return Identity.from_provider(response.user)


class SupabaseProfileStore(BaseRepository[AsyncClient], IProfileStore):
    """
    Reads rows from the ``profiles`` table as the signed-in user.

    Row-level security decides what the caller may see; a row hidden by
    policy looks the same as a missing row.
    """

    async def get_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        try:
            result = await (
                self._db.table("profiles")
                .select("id, email, full_name, role, is_active")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise ProfileStoreError(str(e))
        return self._first(result.data)


class SupabaseSessionRevoker:
    """Server-side sign-out of a specific access token (service-role client)."""

    def __init__(self, client: Client):
        self._client = client

    def revoke(self, access_token: str) -> None:
        try:
            self._client.auth.admin.sign_out(access_token)
        except Exception as e:
            raise _provider_error(e)
