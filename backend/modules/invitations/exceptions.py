"""
Invitation module exceptions.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    PanelError,
    ValidationError,
)


class InvitationStateError(PanelError):
    """The invitation cannot be used; the user is sent back to sign-in."""

    pass


class NotSignedInError(InvitationStateError):
    def __init__(self):
        super().__init__(
            "Please sign in with the link from your email first",
            code="NOT_SIGNED_IN",
        )


class NoValidInvitationError(InvitationStateError):
    def __init__(self):
        super().__init__("No valid invitation found for your email", code="NO_VALID_INVITATION")


class InvitationVerificationError(InvitationStateError):
    def __init__(self):
        super().__init__("Failed to verify invitation", code="INVITATION_VERIFICATION_FAILED")


class InvalidInvitationError(ValidationError):
    """Raised server-side when the referenced invitation is not pending."""

    def __init__(self):
        super().__init__("Invalid or expired invitation", code="INVALID_INVITATION")


class InvitationValidationError(ValidationError):
    """Form input rejected before anything is sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="INVITATION_FORM_INVALID",
            details={"field": field} if field else None,
        )


class SessionExpiredError(AuthenticationError):
    def __init__(self):
        super().__init__(
            "Your session has expired. Please sign in again with the link from your email.",
            code="SESSION_EXPIRED",
        )


class PasswordReauthenticationRequiredError(AuthenticationError):
    """The provider wants the user to re-verify before changing the password."""

    def __init__(self):
        super().__init__(
            "For security, please request a new sign-in link and open it before setting your password.",
            code="REAUTHENTICATION_REQUIRED",
        )


class FinalizeInvitationError(ExternalServiceError):
    """The finalize-invitation endpoint refused or failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            service="accept_invitation",
            code="FINALIZE_FAILED",
            details={"status_code": status_code},
        )
        self.status_code = status_code


class ProfileWriteError(PanelError):
    """Creating or updating the accepted user's profile failed."""

    def __init__(self, message: str = "Failed to create profile"):
        super().__init__(message, code="PROFILE_WRITE_FAILED")
