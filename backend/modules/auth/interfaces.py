"""
Authentication module interfaces.

The session core depends on these protocols, not on Supabase directly.
This enables testing with fakes and swapping the hosted provider later.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from shared.models import Identity

from .models import AuthSession, Profile, SessionState


AuthChangeCallback = Callable[[str, Optional[Identity]], Awaitable[None]]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    Contract for the hosted identity provider.

    Every failing call raises IdentityProviderError with the provider's
    own message; callers decide what, if anything, to show users.
    """

    async def get_session(self) -> Optional[Identity]:
        """Return the identity of the persisted session, if any."""
        ...

    def on_auth_state_change(self, callback: AuthChangeCallback) -> Unsubscribe:
        """
        Register a callback for identity changes made elsewhere.

        Args:
            callback: Awaited with (event_name, identity_or_None)

        Returns:
            A function that removes the subscription
        """
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    async def sign_out(self) -> None:
        ...

    async def update_user(self, *, password: str) -> Identity:
        ...

    async def get_user(self) -> Optional[Identity]:
        """Return the identity currently authenticated, re-validated by the provider."""
        ...


@runtime_checkable
class IProfileStore(Protocol):
    """Point lookup of profile rows."""

    async def get_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        """
        Get the raw profile row for a user.

        Returns:
            The row, or None if no row exists

        Raises:
            ProfileStoreError: On any query failure
        """
        ...


@runtime_checkable
class INavigator(Protocol):
    """Moves the UI to another surface, optionally after a delay."""

    def navigate(self, path: str, delay: float = 0.0) -> None:
        ...


@runtime_checkable
class ISessionManager(Protocol):
    """What pages consume from the session core."""

    @property
    def state(self) -> SessionState:
        ...

    @property
    def user(self) -> Optional[Identity]:
        ...

    @property
    def profile(self) -> Optional[Profile]:
        ...

    @property
    def loading(self) -> bool:
        ...

    @property
    def auth_loading(self) -> bool:
        ...

    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    async def sign_out(self) -> None:
        ...
