"""
Authentication module exceptions.

These exceptions are raised by the session core and can be caught by the UI
layer or by API error handlers to produce user-facing messages. Messages are
already sanitized; provider text is only ever carried in ``details`` when
debug logging is on.
"""

from shared.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    PanelError,
    RateLimitError,
)


class InvalidCredentialsError(AuthenticationError):
    """Raised when the identity provider rejects an email/password pair."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class RateLimitExceededError(RateLimitError):
    """Raised when too many sign-in attempts were made for one email."""

    def __init__(self, retry_after_seconds: int = 0):
        super().__init__(
            "Too many login attempts. Please try again later.",
            code="RATE_LIMITED",
            details={"retry_after_seconds": retry_after_seconds},
        )


class IdentityProviderError(ExternalServiceError):
    """Raised by identity provider adapters when a call fails."""

    def __init__(self, message: str, code: str = "IDENTITY_PROVIDER_ERROR"):
        super().__init__(message, service="supabase_auth", code=code)


class ProfileStoreError(ExternalServiceError):
    """Raised by profile store adapters when a query fails."""

    def __init__(self, message: str):
        super().__init__(message, service="profiles", code="PROFILE_STORE_ERROR")


class TransientFetchError(PanelError):
    """
    A recoverable profile fetch failure (network, timeout, store outage).

    The session keeps the user and clears the profile.
    """

    def __init__(self, user_id: str, reason: str = "Profile could not be loaded"):
        super().__init__(reason, code="PROFILE_FETCH_FAILED", details={"user_id": user_id})


class ProfileIntegrityError(PanelError):
    """
    A profile row failed validation.

    Fatal: the session is signed out at the provider and cleared locally.
    """

    def __init__(self, code: str, message: str = "Profile failed validation"):
        super().__init__(message, code=code)


class InactiveAccountError(ProfileIntegrityError):
    """Raised when the profile exists but the account is deactivated."""

    def __init__(self):
        super().__init__("ACCOUNT_INACTIVE", "This account has been deactivated")
