"""
Invitation acceptance workflow.

An invited user arrives signed in through a one-time email link. The flow
checks that a pending invitation exists for their email, collects a name and
a new password, sets the password through the identity provider, and asks
the API to create their profile with the invited role.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings, get_settings
from shared.models import Identity
from shared.validation import MAX_FULL_NAME_LENGTH, MIN_FULL_NAME_LENGTH, password_violation

from modules.auth.interfaces import IIdentityProvider, INavigator

from .exceptions import (
    InvitationStateError,
    InvitationValidationError,
    InvitationVerificationError,
    NoValidInvitationError,
    NotSignedInError,
    PasswordReauthenticationRequiredError,
    SessionExpiredError,
)
from .interfaces import IInvitationFinalizer, IInvitationStore
from .models import (
    AcceptanceResult,
    AcceptInvitationRequest,
    Invitation,
    InvitationFlowState,
)

logger = logging.getLogger(__name__)


class PasswordErrorKind(str, Enum):
    REAUTHENTICATE = "reauthenticate"
    SESSION_EXPIRED = "session_expired"
    SAME_PASSWORD = "same_password"
    OTHER = "other"


def classify_password_error(error: Exception) -> PasswordErrorKind:
    """
    Sort a password-update failure into how the flow should react.

    Uses the provider's error code when there is one and falls back to
    its message text.
    """
    code = str(getattr(error, "code", "") or "").lower()
    message = str(getattr(error, "message", None) or error).lower()

    if code.startswith("reauthentication") or "reauthenticat" in message or "re-verif" in message:
        return PasswordErrorKind.REAUTHENTICATE
    if code in ("session_expired", "session_not_found") or (
        "session" in message and ("expired" in message or "missing" in message)
    ):
        return PasswordErrorKind.SESSION_EXPIRED
    if code == "same_password" or "different from the old password" in message or "should be different" in message:
        return PasswordErrorKind.SAME_PASSWORD
    return PasswordErrorKind.OTHER


class InvitationAcceptanceFlow:
    """
    verifying -> valid | invalid; valid/failed -> submitting -> success | failed

    ``verify()`` must succeed before ``submit()``. Form validation failures
    leave the state untouched so the user can correct the input; failures
    after submission start move the flow to ``failed``, from which it can be
    resubmitted.
    """

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        invitation_store: IInvitationStore,
        finalizer: IInvitationFinalizer,
        navigator: Optional[INavigator] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._provider = identity_provider
        self._store = invitation_store
        self._finalizer = finalizer
        self._navigator = navigator
        self._settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = InvitationFlowState.VERIFYING
        self.invitation: Optional[Invitation] = None
        self.email: Optional[str] = None

    @property
    def role(self) -> Optional[str]:
        return self.invitation.role if self.invitation else None

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    async def verify(self) -> Invitation:
        """
        Find the pending invitation for the signed-in user.

        Raises:
            NotSignedInError: No identity, or its email is not confirmed
            NoValidInvitationError: Nothing pending for this email
            InvitationVerificationError: The lookup itself failed
        """
        self.state = InvitationFlowState.VERIFYING

        try:
            identity = await self._provider.get_user()
        except Exception as e:
            logger.debug("Identity lookup failed: %s", type(e).__name__)
            identity = None

        if identity is None or not identity.email or not identity.email_verified:
            raise self._invalidate(NotSignedInError())

        now = self._clock()
        try:
            row = await self._store.find_pending(identity.email, now)
        except Exception as e:
            logger.warning("Invitation lookup failed: %s", type(e).__name__)
            raise self._invalidate(InvitationVerificationError()) from e

        invitation = self._parse_invitation(row, identity.email, now)
        if invitation is None:
            raise self._invalidate(NoValidInvitationError())

        self.invitation = invitation
        self.email = identity.email
        self.state = InvitationFlowState.VALID
        return invitation

    def _parse_invitation(
        self,
        row: Optional[dict[str, Any]],
        email: str,
        now: datetime,
    ) -> Optional[Invitation]:
        if not row:
            return None
        try:
            invitation = Invitation.model_validate(row)
        except PydanticValidationError:
            logger.warning("Discarding malformed invitation row")
            return None
        if invitation.email.strip().lower() != email.strip().lower():
            return None
        if not invitation.is_pending(now):
            return None
        return invitation

    def _invalidate(self, error: InvitationStateError) -> InvitationStateError:
        self.state = InvitationFlowState.INVALID
        self.invitation = None
        self._navigate(self._settings.login_path, self._settings.invitation_redirect_delay_seconds)
        return error

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def validate(self, full_name: str, password: str, confirm_password: str) -> str:
        """
        Check the form, failing on the first problem.

        Returns:
            The trimmed full name

        Raises:
            InvitationValidationError
        """
        name = (full_name or "").strip()
        if not name:
            raise InvitationValidationError("Please enter your full name", field="full_name")
        if len(name) < MIN_FULL_NAME_LENGTH:
            raise InvitationValidationError(
                f"Full name must be at least {MIN_FULL_NAME_LENGTH} characters",
                field="full_name",
            )
        if len(name) > MAX_FULL_NAME_LENGTH:
            raise InvitationValidationError(
                f"Full name must be at most {MAX_FULL_NAME_LENGTH} characters",
                field="full_name",
            )

        violation = password_violation(password)
        if violation:
            raise InvitationValidationError(violation, field="password")
        if password != confirm_password:
            raise InvitationValidationError("Passwords do not match", field="confirm_password")

        if self.invitation is None:
            raise InvitationValidationError("No invitation found")
        if not self.invitation.has_known_role:
            raise InvitationValidationError("Invitation has an invalid role")
        return name

    async def submit(self, full_name: str, password: str, confirm_password: str) -> AcceptanceResult:
        """
        Set the password and finalize the invitation.

        Raises:
            InvitationStateError: ``verify()`` has not succeeded
            InvitationValidationError: Bad form input (state unchanged)
            SessionExpiredError: The identity went away mid-form
            PasswordReauthenticationRequiredError: Provider wants re-verification
            FinalizeInvitationError: The API refused the acceptance
        """
        if self.state not in (InvitationFlowState.VALID, InvitationFlowState.FAILED):
            raise InvitationStateError(
                "Invitation has not been verified",
                code="INVITATION_NOT_VERIFIED",
            )

        name = self.validate(full_name, password, confirm_password)

        self.state = InvitationFlowState.SUBMITTING
        try:
            result = await self._accept(name, password)
        except Exception:
            self.state = InvitationFlowState.FAILED
            raise

        self.state = InvitationFlowState.SUCCESS
        self._navigate(self._settings.panel_path, self._settings.success_redirect_delay_seconds)
        return result

    async def _accept(self, name: str, password: str) -> AcceptanceResult:
        identity = await self._current_identity()
        password_updated, warning = await self._set_password(password)

        invitation = self.invitation
        request = AcceptInvitationRequest(
            id=identity.id,
            email=identity.email or self.email or "",
            full_name=name,
            role=invitation.role,
            invited_by=invitation.invited_by,
            invitation_id=invitation.id,
            is_active=True,
        )
        response = await self._finalizer.finalize(request)

        if password_updated:
            message = "Account setup complete! Redirecting..."
        else:
            message = "Account setup complete! Your existing password was kept. Redirecting..."

        return AcceptanceResult(
            password_updated=password_updated,
            message=message,
            warning=warning,
            profile=response.get("profile") if isinstance(response, dict) else None,
        )

    async def _current_identity(self) -> Identity:
        try:
            identity = await self._provider.get_user()
        except Exception as e:
            logger.debug("Identity re-check failed: %s", type(e).__name__)
            raise SessionExpiredError() from None
        if identity is None:
            raise SessionExpiredError()
        return identity

    async def _set_password(self, password: str) -> tuple[bool, Optional[str]]:
        try:
            await self._provider.update_user(password=password)
        except Exception as e:
            kind = classify_password_error(e)
            logger.info("Password update failed (%s)", kind.value)
            if kind == PasswordErrorKind.REAUTHENTICATE:
                raise PasswordReauthenticationRequiredError() from None
            if kind == PasswordErrorKind.SESSION_EXPIRED:
                raise SessionExpiredError() from None
            # One-time-code sign-in may have pre-assigned this same password
            if kind == PasswordErrorKind.SAME_PASSWORD:
                return False, "Your current password was kept because it matches the new one."
            return False, "Your password could not be updated; you can change it later."
        return True, None

    def _navigate(self, path: str, delay: float) -> None:
        if self._navigator is None:
            logger.debug("No navigator; would go to %s", path)
            return
        self._navigator.navigate(path, delay)
