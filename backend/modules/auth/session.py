"""
Session manager.

Owns the signed-in identity and its profile, and resolves one from the other.
State changes come from three places: restoring the persisted session on
``start()``, identity-change notifications from the provider (dispatched
through ``handle_auth_change``), and explicit ``sign_in``/``sign_out`` calls.

Profile fetches run as asyncio tasks. Starting a fetch for a different user
cancels the previous task, and every continuation re-checks that it is still
the authoritative fetch before touching state, so a slow response for an old
user can never overwrite a newer one.
"""

import asyncio
import logging
from typing import Callable, Optional

from shared.config import Settings, get_settings
from shared.exceptions import AuthenticationError, PanelError, ValidationError
from shared.models import Identity
from shared.validation import (
    PASSWORD_POLICY_MESSAGE,
    is_valid_email,
    is_valid_password,
    is_valid_uuid,
    normalize_email,
)

from .exceptions import (
    IdentityProviderError,
    InvalidCredentialsError,
    ProfileIntegrityError,
    RateLimitExceededError,
    TransientFetchError,
)
from .interfaces import (
    IIdentityProvider,
    INavigator,
    IProfileStore,
    ISessionManager,
    Unsubscribe,
)
from .models import AuthSession, Profile, SessionState, SessionStatus, parse_profile
from .rate_limiter import RateLimitLedger
from .roles import RoleResolver

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class SessionManager(ISessionManager):
    """
    Authenticated-identity lifecycle for one client session.

    Usage:
        async with SessionManager(provider, profiles) as session:
            await session.sign_in("a@b.com", "Abcd123!")
            if session.roles.can_delete():
                ...
    """

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        profile_store: IProfileStore,
        rate_limiter: Optional[RateLimitLedger] = None,
        navigator: Optional[INavigator] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._provider = identity_provider
        self._profiles = profile_store
        # An empty ledger is falsy (__len__), so test for None explicitly
        if rate_limiter is None:
            rate_limiter = RateLimitLedger(
                max_attempts=self._settings.login_attempt_limit,
                window_seconds=self._settings.login_attempt_window_seconds,
                max_tracked_emails=self._settings.login_attempt_max_tracked_emails,
            )
        self._rate_limiter = rate_limiter
        self._navigator = navigator

        self._state = SessionState()
        self._listeners: list[StateListener] = []

        self._started = False
        self._closed = False
        self._initializing = False
        self._unsubscribe: Optional[Unsubscribe] = None

        # In-flight profile fetch and the user id it is for
        self._fetch_task: Optional[asyncio.Task] = None
        self._fetch_user_id: Optional[str] = None
        self._fetch_error: Optional[PanelError] = None

    async def __aenter__(self) -> "SessionManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[Identity]:
        return self._state.user

    @property
    def profile(self) -> Optional[Profile]:
        return self._state.profile

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def auth_loading(self) -> bool:
        return self._state.auth_loading

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def fetch_error(self) -> Optional[PanelError]:
        """Why the last profile fetch left no profile, if it failed."""
        return self._fetch_error

    @property
    def rate_limiter(self) -> RateLimitLedger:
        return self._rate_limiter

    @property
    def roles(self) -> RoleResolver:
        return RoleResolver(profile=self._state.profile, loading=self._state.loading)

    # CLIENT-SIDE ONLY: these drive what the UI shows, never authorization
    @property
    def is_active(self) -> bool:
        return self.roles.is_active

    @property
    def is_owner(self) -> bool:
        return self.roles.is_owner

    @property
    def is_admin(self) -> bool:
        return self.roles.is_admin

    @property
    def is_officer(self) -> bool:
        return self.roles.is_officer

    @property
    def is_admin_or_owner(self) -> bool:
        return self.roles.is_admin_or_owner

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """
        Call ``listener`` with a fresh snapshot after every state change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _update(self, **changes) -> None:
        if self._closed:
            return
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Session state listener failed")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Restore any persisted session and subscribe to identity changes.

        Notifications that arrive before this returns are ignored; the
        restored session (and its profile fetch) is authoritative.
        """
        if self._started:
            return
        self._started = True
        self._initializing = True
        self._unsubscribe = self._provider.on_auth_state_change(self.handle_auth_change)

        try:
            identity = await self._provider.get_session()
            if identity is not None:
                self._update(user=identity, profile=None)
                await self.fetch_profile(identity.id)
                self._settle_loading()
            else:
                self._update(user=None, profile=None, loading=False)
        except Exception as e:
            self._log_provider_error("Auth initialization error", e)
            self._update(loading=False)
        finally:
            self._initializing = False

    def close(self) -> None:
        """Stop reacting to the provider and discard any pending fetch."""
        self._closed = True
        self._cancel_fetch()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_auth_change(self, event: str, identity: Optional[Identity]) -> None:
        """
        Apply an identity-change notification from the provider.

        Only a change of user id does anything; token refreshes for the
        same user are no-ops.
        """
        if self._initializing or not self._started or self._closed:
            logger.debug("Ignoring auth event %s", event)
            return

        new_user_id = identity.id if identity else None
        current_user_id = self._state.user.id if self._state.user else None
        if new_user_id == current_user_id:
            return

        logger.debug("Auth event %s changed user", event)
        if identity is not None:
            self._update(user=identity, profile=None)
            await self.fetch_profile(identity.id)
            self._settle_loading()
        else:
            self._cancel_fetch()
            self._update(user=None, profile=None, loading=False)

    # -------------------------------------------------------------------------
    # Profile resolution
    # -------------------------------------------------------------------------

    async def fetch_profile(self, user_id: str) -> None:
        """
        Load and validate the profile for ``user_id``.

        A fetch already running for the same user is awaited rather than
        duplicated; one running for a different user is cancelled.
        """
        if not is_valid_uuid(user_id):
            logger.warning("Refusing profile fetch: invalid user ID format")
            return

        task = self._fetch_task
        if task is not None and not task.done():
            if self._fetch_user_id == user_id:
                await asyncio.wait({task})
                return
            task.cancel()

        self._fetch_user_id = user_id
        if not self._state.loading:
            self._update(loading=True)
        task = asyncio.create_task(self._load_profile(user_id))
        self._fetch_task = task
        await asyncio.wait({task})

    def _is_authoritative(self, user_id: str) -> bool:
        return (
            not self._closed
            and self._fetch_task is asyncio.current_task()
            and self._fetch_user_id == user_id
        )

    async def _load_profile(self, user_id: str) -> None:
        try:
            row = await self._profiles.get_profile(user_id)
            if not self._is_authoritative(user_id):
                return
            profile = parse_profile(row, user_id)
        except asyncio.CancelledError:
            logger.debug("Profile fetch superseded")
            raise
        except ProfileIntegrityError as e:
            if self._is_authoritative(user_id):
                logger.warning("Profile rejected (%s); signing out", e.code)
                self._fetch_error = e
                await self._force_sign_out()
        except Exception as e:
            if self._is_authoritative(user_id):
                self._log_provider_error("Profile fetch failed", e)
                self._fetch_error = TransientFetchError(user_id)
                self._update(profile=None)
        else:
            if self._state.user is not None and self._state.user.id == user_id:
                self._fetch_error = None
                self._update(profile=profile)
        finally:
            if self._fetch_task is asyncio.current_task():
                self._fetch_task = None
                self._fetch_user_id = None
                self._update(loading=False)

    async def _force_sign_out(self) -> None:
        # Local state goes first so the provider's SIGNED_OUT echo is a no-op
        self._update(user=None, profile=None)
        try:
            await self._provider.sign_out()
        except Exception as e:
            self._log_provider_error("Forced sign out error", e)

    def _cancel_fetch(self) -> None:
        task = self._fetch_task
        self._fetch_task = None
        self._fetch_user_id = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _settle_loading(self) -> None:
        if self._fetch_task is None and self._state.loading:
            self._update(loading=False)

    # -------------------------------------------------------------------------
    # Explicit operations
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Sign in with email and password.

        Input is validated and throttled before the provider is called.
        Provider failures are reported with a generic message so responses
        never reveal whether an account exists.

        Raises:
            ValidationError: Missing or malformed email/password
            RateLimitExceededError: Too many recent attempts for this email
            InvalidCredentialsError: The provider rejected the credentials
            AuthenticationError: Any other failure
        """
        self._update(auth_loading=True)
        try:
            normalized_email = normalize_email(email)

            if not normalized_email or not password:
                raise ValidationError("Email and password are required", code="MISSING_CREDENTIALS")
            if not is_valid_email(normalized_email):
                raise ValidationError("Invalid email format", code="INVALID_EMAIL")
            if not is_valid_password(password):
                raise ValidationError(PASSWORD_POLICY_MESSAGE, code="INVALID_PASSWORD")

            if self._rate_limiter.is_rate_limited(normalized_email):
                raise RateLimitExceededError(self._rate_limiter.retry_after(normalized_email))
            self._rate_limiter.record_attempt(normalized_email)

            try:
                session = await self._provider.sign_in_with_password(normalized_email, password)
            except IdentityProviderError as e:
                self._log_provider_error("Sign in error", e)
                raise InvalidCredentialsError() from None
            except Exception as e:
                self._log_provider_error("Unexpected sign in error", e)
                raise AuthenticationError(
                    "Authentication failed. Please try again.",
                    code="AUTHENTICATION_FAILED",
                ) from None

            if session.user is not None:
                self._rate_limiter.clear(normalized_email)
            return session
        finally:
            self._update(auth_loading=False)

    async def sign_out(self) -> None:
        """
        Sign out at the provider and clear local state.

        Local state is cleared even if the provider call fails, and the
        UI is always sent to the login surface.
        """
        self._update(auth_loading=True)
        self._cancel_fetch()
        try:
            await self._provider.sign_out()
        except Exception as e:
            self._log_provider_error("Sign out error", e)
        finally:
            self._update(user=None, profile=None, loading=False, auth_loading=False)
            self._navigate(self._settings.login_path)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _navigate(self, path: str, delay: float = 0.0) -> None:
        if self._navigator is None:
            logger.debug("No navigator; would go to %s", path)
            return
        self._navigator.navigate(path, delay)

    def _log_provider_error(self, context: str, error: Exception) -> None:
        # Provider text can reveal account state; only log it in debug builds
        if self._settings.debug:
            logger.debug("%s: %r", context, error)
        else:
            logger.info("%s (%s)", context, type(error).__name__)
