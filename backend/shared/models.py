"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field


class Identity(BaseModel):
    """
    The authenticated principal as known by the identity provider.

    Owned by Supabase Auth; read-only to this backend. The session core
    holds a reference to one while a session is active.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: Optional[str] = Field(None, description="User's email address")
    email_confirmed_at: Optional[datetime] = Field(None, description="Email confirmation time")
    last_sign_in_at: Optional[datetime] = Field(None, description="Last sign-in time")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra fields from the provider
    }

    @property
    def email_verified(self) -> bool:
        return self.email_confirmed_at is not None

    @classmethod
    def from_provider(cls, user: Any) -> "Identity":
        """Build an Identity from a provider user object or mapping."""
        if isinstance(user, dict):
            return cls.model_validate(user)
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            email_confirmed_at=getattr(user, "email_confirmed_at", None),
            last_sign_in_at=getattr(user, "last_sign_in_at", None),
        )


class AuthenticatedUser(BaseModel):
    """
    Represents a caller authenticated by a bearer token.

    Populated from JWT claims by the API middleware and made available
    to route handlers via dependency injection.
    """

    id: str = Field(..., description="User ID (UUID from Supabase)")
    email: EmailStr = Field(..., description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")
    access_token: str = Field(default="", repr=False, description="Raw bearer token")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }
