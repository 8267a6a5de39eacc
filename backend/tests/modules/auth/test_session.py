import asyncio

import pytest

from modules.auth.exceptions import (
    IdentityProviderError,
    InactiveAccountError,
    InvalidCredentialsError,
    ProfileIntegrityError,
    ProfileStoreError,
    RateLimitExceededError,
    TransientFetchError,
)
from modules.auth.models import SessionStatus, UserRole
from modules.auth.rate_limiter import RateLimitLedger
from modules.auth.session import SessionManager
from shared.exceptions import AuthenticationError, ValidationError

from fakes import USER_A, USER_B, make_identity, make_profile_row


GOOD_PASSWORD = "Abcd123!"


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def ledger(clock):
    return RateLimitLedger(max_attempts=5, window_seconds=900, clock=clock)


@pytest.fixture
def session(identity_provider, profile_store, ledger, navigator, settings):
    return SessionManager(
        identity_provider,
        profile_store,
        rate_limiter=ledger,
        navigator=navigator,
        settings=settings,
    )


class TestStart:
    @pytest.mark.asyncio
    async def test_initial_state(self, session):
        """Before start the session is initializing with nothing loaded."""
        assert session.user is None
        assert session.profile is None
        assert session.loading is True
        assert session.auth_loading is False
        assert session.status == SessionStatus.INITIALIZING

    @pytest.mark.asyncio
    async def test_no_persisted_session(self, session):
        """Without a persisted session the core settles unauthenticated."""
        await session.start()
        assert session.user is None
        assert session.loading is False
        assert session.status == SessionStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_restores_session_and_profile(self, session, identity_provider, profile_store):
        """A persisted session is restored with its profile."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A, role="admin")

        await session.start()

        assert session.user.id == USER_A
        assert session.profile.role == UserRole.ADMIN
        assert session.loading is False
        assert session.status == SessionStatus.AUTHENTICATED_WITH_PROFILE
        assert session.is_admin is True

    @pytest.mark.asyncio
    async def test_get_session_failure_settles(self, session, identity_provider):
        """A provider failure during start still clears loading."""
        identity_provider.get_session_error = IdentityProviderError("boom")
        await session.start()
        assert session.user is None
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, session, identity_provider):
        """A second start does not subscribe twice."""
        await session.start()
        await session.start()
        assert len(identity_provider.callbacks) == 1

    @pytest.mark.asyncio
    async def test_notifications_during_start_are_ignored(self, session, identity_provider, profile_store):
        """Identity events that arrive while restoring the session are dropped."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        profile_store.rows[USER_B] = make_profile_row(USER_B, email="b@b.com")
        gate = profile_store.hold(USER_A)

        starting = asyncio.create_task(session.start())
        await _settle()
        await identity_provider.emit("SIGNED_IN", make_identity(USER_B, "b@b.com"))
        gate.set()
        await starting

        assert session.user.id == USER_A
        assert session.profile.id == USER_A
        assert profile_store.calls == [USER_A]

    @pytest.mark.asyncio
    async def test_context_manager(self, identity_provider, profile_store, settings):
        """The async context manager starts and closes the session."""
        async with SessionManager(identity_provider, profile_store, settings=settings) as session:
            assert session.loading is False
            assert len(identity_provider.callbacks) == 1
        assert identity_provider.callbacks == []


class TestProfileResolution:
    @pytest.mark.asyncio
    async def test_id_mismatch_signs_out(self, session, identity_provider, profile_store):
        """A row belonging to another user signs the session out."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_B)

        await session.start()

        assert session.user is None
        assert session.profile is None
        assert session.loading is False
        assert identity_provider.sign_out_calls == 1
        assert isinstance(session.fetch_error, ProfileIntegrityError)
        assert session.fetch_error.code == "PROFILE_ID_MISMATCH"

    @pytest.mark.asyncio
    async def test_missing_row_signs_out(self, session, identity_provider):
        """No profile row at all is treated as an integrity failure."""
        identity_provider.session_identity = make_identity(USER_A)
        await session.start()
        assert session.user is None
        assert session.fetch_error.code == "INVALID_PROFILE_STRUCTURE"

    @pytest.mark.asyncio
    async def test_inactive_account_signs_out(self, session, identity_provider, profile_store):
        """A deactivated account is signed out."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A, is_active=False)
        await session.start()
        assert session.user is None
        assert isinstance(session.fetch_error, InactiveAccountError)

    @pytest.mark.asyncio
    async def test_forced_sign_out_survives_provider_error(self, session, identity_provider, profile_store):
        """Local state is cleared even if the provider sign-out fails."""
        identity_provider.session_identity = make_identity(USER_A)
        identity_provider.sign_out_error = IdentityProviderError("down")
        profile_store.rows[USER_A] = make_profile_row(USER_A, role="superuser")
        await session.start()
        assert session.user is None
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_network_error_keeps_user(self, session, identity_provider, profile_store):
        """A transient store failure keeps the user and leaves no profile."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.errors[USER_A] = ProfileStoreError("connection reset")

        await session.start()

        assert session.user.id == USER_A
        assert session.profile is None
        assert session.loading is False
        assert session.status == SessionStatus.AUTHENTICATED_NO_PROFILE
        assert isinstance(session.fetch_error, TransientFetchError)
        assert identity_provider.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_invalid_user_id_is_not_fetched(self, session, profile_store):
        """A malformed user id never reaches the store."""
        await session.fetch_profile("not-a-uuid")
        assert profile_store.calls == []

    @pytest.mark.asyncio
    async def test_newer_fetch_wins(self, session, identity_provider, profile_store):
        """A slow fetch for an earlier user never overwrites a later one."""
        await session.start()
        profile_store.rows[USER_A] = make_profile_row(USER_A, role="owner")
        profile_store.rows[USER_B] = make_profile_row(USER_B, email="b@b.com", role="officer")
        gate_a = profile_store.hold(USER_A)
        gate_b = profile_store.hold(USER_B)

        first = asyncio.create_task(session.handle_auth_change("SIGNED_IN", make_identity(USER_A)))
        await _settle()
        second = asyncio.create_task(
            session.handle_auth_change("SIGNED_IN", make_identity(USER_B, "b@b.com"))
        )
        await _settle()

        gate_b.set()
        await second
        gate_a.set()
        await first
        await _settle()

        assert session.user.id == USER_B
        assert session.profile.id == USER_B
        assert session.profile.role == UserRole.OFFICER
        assert session.loading is False

    @pytest.mark.asyncio
    async def test_concurrent_fetch_for_same_user_is_shared(self, session, identity_provider, profile_store):
        """Two fetches for the same user hit the store once."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        await session.start()
        profile_store.calls.clear()

        gate = profile_store.hold(USER_A)
        first = asyncio.create_task(session.fetch_profile(USER_A))
        await _settle()
        second = asyncio.create_task(session.fetch_profile(USER_A))
        await _settle()
        gate.set()
        await asyncio.gather(first, second)

        assert profile_store.calls == [USER_A]
        assert session.profile.id == USER_A

    @pytest.mark.asyncio
    async def test_sign_out_during_fetch_discards_result(self, session, identity_provider, profile_store):
        """A fetch that completes after sign-out leaves no profile behind."""
        await session.start()
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        gate = profile_store.hold(USER_A)

        pending = asyncio.create_task(session.handle_auth_change("SIGNED_IN", make_identity(USER_A)))
        await _settle()
        await session.sign_out()
        gate.set()
        await pending
        await _settle()

        assert session.user is None
        assert session.profile is None
        assert session.loading is False


class TestAuthChanges:
    @pytest.mark.asyncio
    async def test_same_user_event_is_noop(self, session, identity_provider, profile_store):
        """Token refreshes for the same user do not refetch."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        await session.start()

        await identity_provider.emit("TOKEN_REFRESHED", make_identity(USER_A))
        assert profile_store.calls == [USER_A]

    @pytest.mark.asyncio
    async def test_external_sign_out_clears_state(self, session, identity_provider, profile_store):
        """A sign-out made elsewhere clears the local session."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        await session.start()

        await identity_provider.emit("SIGNED_OUT", None)
        assert session.user is None
        assert session.profile is None
        assert session.status == SessionStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_close_stops_updates(self, session, identity_provider, profile_store):
        """After close no notification or fetch changes state."""
        await session.start()
        session.close()
        profile_store.rows[USER_A] = make_profile_row(USER_A)

        await session.handle_auth_change("SIGNED_IN", make_identity(USER_A))
        assert session.user is None
        assert identity_provider.callbacks == []

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self, session):
        """Listeners see every change and can be removed."""
        seen = []
        remove = session.add_listener(seen.append)
        await session.start()
        assert seen[-1].loading is False

        remove()
        count = len(seen)
        await session.sign_out()
        assert len(seen) == count

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_updates(self, session):
        """A listener that raises does not stop the state change."""
        def broken(state):
            raise RuntimeError("listener bug")

        session.add_listener(broken)
        await session.start()
        assert session.loading is False


class TestSignIn:
    @pytest.mark.asyncio
    async def test_officer_sign_in(self, session, identity_provider, profile_store):
        """A successful sign-in resolves the officer profile."""
        identity = make_identity(USER_A, "a@b.com")
        identity_provider.add_account("a@b.com", GOOD_PASSWORD, identity)
        profile_store.rows[USER_A] = make_profile_row(USER_A, role="officer")
        await session.start()

        result = await session.sign_in("  A@B.com ", GOOD_PASSWORD)

        assert result.user.id == USER_A
        assert identity_provider.sign_in_calls == [("a@b.com", GOOD_PASSWORD)]
        assert session.user.id == USER_A
        assert session.profile.role == UserRole.OFFICER
        assert session.is_officer is True
        assert session.is_admin is False
        assert session.loading is False
        assert session.roles.can_delete() is False
        assert session.roles.can_edit() is True
        assert session.auth_loading is False
        assert "a@b.com" not in session.rate_limiter

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password,code",
        [
            ("", GOOD_PASSWORD, "MISSING_CREDENTIALS"),
            ("a@b.com", "", "MISSING_CREDENTIALS"),
            ("not-an-email", GOOD_PASSWORD, "INVALID_EMAIL"),
            ("a" * 249 + "@b.com", GOOD_PASSWORD, "INVALID_EMAIL"),
            ("a@b.com", "short", "INVALID_PASSWORD"),
            ("a@b.com", "alllowercase1!", "INVALID_PASSWORD"),
        ],
    )
    async def test_malformed_input_never_reaches_provider(
        self, session, identity_provider, email, password, code
    ):
        """Bad input is rejected locally."""
        await session.start()
        with pytest.raises(ValidationError) as exc_info:
            await session.sign_in(email, password)
        assert exc_info.value.code == code
        assert identity_provider.sign_in_calls == []
        assert session.auth_loading is False

    @pytest.mark.asyncio
    async def test_wrong_password_is_generic(self, session, identity_provider):
        """Provider rejections become a generic credentials error."""
        identity_provider.add_account("a@b.com", GOOD_PASSWORD, make_identity(USER_A))
        await session.start()
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await session.sign_in("a@b.com", "Wrong123!")
        assert exc_info.value.message == "Invalid email or password"
        assert session.rate_limiter.attempts("a@b.com") == 1

    @pytest.mark.asyncio
    async def test_unexpected_provider_failure(self, session, identity_provider):
        """Non-provider exceptions become a generic authentication error."""
        async def explode(email, password):
            raise RuntimeError("socket closed")

        identity_provider.sign_in_with_password = explode
        await session.start()
        with pytest.raises(AuthenticationError) as exc_info:
            await session.sign_in("a@b.com", GOOD_PASSWORD)
        assert exc_info.value.code == "AUTHENTICATION_FAILED"
        assert not isinstance(exc_info.value, InvalidCredentialsError)

    @pytest.mark.asyncio
    async def test_rate_limit(self, session, identity_provider, clock):
        """The sixth attempt inside the window is refused without a provider call."""
        await session.start()
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                await session.sign_in("a@b.com", GOOD_PASSWORD)

        with pytest.raises(RateLimitExceededError) as exc_info:
            await session.sign_in("a@b.com", GOOD_PASSWORD)
        assert len(identity_provider.sign_in_calls) == 5
        assert exc_info.value.details["retry_after_seconds"] == 900

        clock.advance(901)
        identity_provider.add_account("a@b.com", GOOD_PASSWORD, make_identity(USER_A))
        result = await session.sign_in("a@b.com", GOOD_PASSWORD)
        assert result.user.id == USER_A

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_email(self, session, identity_provider):
        """Another email is not throttled by the first one's attempts."""
        await session.start()
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                await session.sign_in("a@b.com", GOOD_PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            await session.sign_in("c@d.com", GOOD_PASSWORD)

    @pytest.mark.asyncio
    async def test_default_ledger_uses_settings(self, identity_provider, profile_store, settings):
        """Without an injected ledger the limits come from settings."""
        settings = settings.model_copy(update={"login_attempt_limit": 2})
        session = SessionManager(identity_provider, profile_store, settings=settings)
        assert session.rate_limiter.max_attempts == 2

    def test_injected_ledger_is_kept(self, identity_provider, profile_store, clock, settings):
        """An empty injected ledger is used as-is, clock included."""
        ledger = RateLimitLedger(clock=clock)
        session = SessionManager(identity_provider, profile_store, rate_limiter=ledger, settings=settings)
        assert len(ledger) == 0
        assert session.rate_limiter is ledger


class TestSignOut:
    @pytest.mark.asyncio
    async def test_sign_out_clears_state_and_navigates(
        self, session, identity_provider, profile_store, navigator
    ):
        """Sign-out clears state and sends the UI to login."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        await session.start()

        await session.sign_out()

        assert session.user is None
        assert session.profile is None
        assert session.loading is False
        assert session.auth_loading is False
        assert navigator.calls == [("/login", 0.0)]

    @pytest.mark.asyncio
    async def test_sign_out_provider_error_still_clears(
        self, session, identity_provider, profile_store, navigator
    ):
        """A failing provider sign-out still clears local state."""
        identity_provider.session_identity = make_identity(USER_A)
        profile_store.rows[USER_A] = make_profile_row(USER_A)
        await session.start()
        identity_provider.sign_out_error = IdentityProviderError("offline")

        await session.sign_out()

        assert session.user is None
        assert navigator.calls == [("/login", 0.0)]

    @pytest.mark.asyncio
    async def test_sign_out_without_navigator(self, identity_provider, profile_store, settings):
        """Sign-out works without a navigator."""
        session = SessionManager(identity_provider, profile_store, settings=settings)
        await session.start()
        await session.sign_out()
        assert session.status == SessionStatus.UNAUTHENTICATED
