"""
Authentication module data models.

These models define the data structures used by the session core and
exposed to other modules through the interface. Rows coming back from the
profile store are untrusted until they pass ``parse_profile``.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field

from shared.models import Identity
from shared.validation import is_valid_email, is_valid_full_name

from .exceptions import InactiveAccountError, ProfileIntegrityError


class UserRole(str, Enum):
    """Staff roles, from most to least privileged."""

    OWNER = "owner"
    ADMIN = "admin"
    OFFICER = "officer"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.OWNER: 3,
    UserRole.ADMIN: 2,
    UserRole.OFFICER: 1,
}


class Profile(BaseModel):
    """Application-level user row: role and status, keyed by identity id."""

    id: str = Field(..., description="User ID, equal to the identity id")
    email: EmailStr = Field(..., description="Email address")
    full_name: Optional[str] = Field(None, description="Display name")
    role: UserRole = Field(..., description="Staff role")
    is_active: bool = Field(..., description="Whether the account may sign in")

    model_config = {"frozen": True, "extra": "ignore"}


class AuthSession(BaseModel):
    """Result of a successful password sign-in."""

    user: Identity
    access_token: Optional[str] = Field(None, repr=False)
    refresh_token: Optional[str] = Field(None, repr=False)
    expires_at: Optional[int] = None

    model_config = {"frozen": True}


class SessionStatus(str, Enum):
    INITIALIZING = "initializing"
    AUTHENTICATED_WITH_PROFILE = "authenticated_with_profile"
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"
    UNAUTHENTICATED = "unauthenticated"


class SessionState(BaseModel):
    """
    Snapshot of the session core's externally visible state.

    ``loading`` starts true and stays true until the first profile
    resolution attempt finishes.
    """

    user: Optional[Identity] = None
    profile: Optional[Profile] = None
    loading: bool = True
    auth_loading: bool = False

    model_config = {"frozen": True}

    @property
    def status(self) -> SessionStatus:
        if self.user is None:
            if self.loading:
                return SessionStatus.INITIALIZING
            return SessionStatus.UNAUTHENTICATED
        if self.profile is not None:
            return SessionStatus.AUTHENTICATED_WITH_PROFILE
        if self.loading:
            return SessionStatus.INITIALIZING
        return SessionStatus.AUTHENTICATED_NO_PROFILE


def parse_profile(row: Optional[dict[str, Any]], expected_user_id: str) -> Profile:
    """
    Validate a raw profile row for the given user.

    Args:
        row: Row returned by the profile store (None if no row exists)
        expected_user_id: Identity id the row was requested for

    Returns:
        A validated Profile

    Raises:
        ProfileIntegrityError: If the row is missing, malformed, or belongs
            to someone else
        InactiveAccountError: If the account is deactivated
    """
    if not row or not row.get("role") or not row.get("id") or not row.get("email"):
        raise ProfileIntegrityError("INVALID_PROFILE_STRUCTURE", "Invalid profile data structure")

    if row["id"] != expected_user_id:
        raise ProfileIntegrityError("PROFILE_ID_MISMATCH", "Profile ID mismatch")

    if not is_valid_email(row["email"]):
        raise ProfileIntegrityError("INVALID_PROFILE_EMAIL", "Invalid email in profile")

    full_name = row.get("full_name")
    if full_name and not is_valid_full_name(full_name):
        raise ProfileIntegrityError("INVALID_PROFILE_NAME", "Invalid full name in profile")

    try:
        role = UserRole(row["role"])
    except ValueError:
        raise ProfileIntegrityError("INVALID_PROFILE_STRUCTURE", "Invalid profile data structure")

    if row.get("is_active") is not True:
        raise InactiveAccountError()

    return Profile(
        id=row["id"],
        email=row["email"],
        full_name=full_name,
        role=role,
        is_active=True,
    )
