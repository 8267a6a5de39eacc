"""
Invitation module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field

from modules.auth.models import UserRole


class InvitationFlowState(str, Enum):
    """Acceptance workflow states."""

    VERIFYING = "verifying"
    VALID = "valid"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class Invitation(BaseModel):
    """
    An invitation row.

    ``role`` is kept as a plain string here; the acceptance flow checks it
    against ``UserRole`` before finalizing.
    """

    id: str = Field(..., description="Invitation ID")
    email: str = Field(..., description="Invited email address")
    role: str = Field(..., description="Role granted on acceptance")
    invited_by: Optional[str] = Field(None, description="Inviter's user ID")
    expires_at: datetime = Field(..., description="Expiry time")
    accepted_at: Optional[datetime] = Field(None, description="Acceptance time")
    created_at: Optional[datetime] = Field(None, description="Creation time")

    model_config = {"frozen": True, "extra": "ignore"}

    def is_pending(self, now: Optional[datetime] = None) -> bool:
        """True if not yet accepted and not expired."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return self.accepted_at is None and expires_at > now

    @property
    def has_known_role(self) -> bool:
        return self.role in {role.value for role in UserRole}


class AcceptInvitationRequest(BaseModel):
    """Body of the finalize-invitation call."""

    id: str = Field("", description="Identity ID of the accepting user")
    email: str = Field("", description="Email of the accepting user")
    full_name: str = Field("", description="Trimmed full name")
    role: str = Field("", description="Role from the invitation")
    invited_by: Optional[str] = Field(None, description="Inviter's user ID")
    invitation_id: str = Field("", description="Invitation being accepted")
    is_active: bool = Field(default=True, description="Initial account status")

    def missing_fields(self) -> list[str]:
        required = ("id", "email", "full_name", "role", "invitation_id")
        return [name for name in required if not getattr(self, name)]


class AcceptInvitationResponse(BaseModel):
    """Successful finalize-invitation response."""

    success: bool = True
    profile: Optional[dict[str, Any]] = None
    message: str = "Profile created successfully"


class AcceptanceResult(BaseModel):
    """Outcome of a completed acceptance."""

    password_updated: bool
    message: str
    warning: Optional[str] = None
    profile: Optional[dict[str, Any]] = None
