"""
Invitation acceptance service.

Server side of the finalize-invitation endpoint: re-checks the invitation,
creates or updates the accepted user's profile with the invited role, and
marks the invitation accepted.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from shared.exceptions import AuthorizationError, ValidationError
from shared.models import AuthenticatedUser

from modules.auth.models import UserRole

from .exceptions import InvalidInvitationError, ProfileWriteError
from .models import AcceptInvitationRequest
from .repository import InvitationRepository

logger = logging.getLogger(__name__)


def _profile_error_message(error: Exception) -> str:
    """Map a database error to a message that is safe to return."""
    message = str(getattr(error, "message", None) or error)
    if "duplicate key" in message:
        return "Profile already exists for this user"
    if "foreign key" in message:
        return "Invalid invitation reference"
    if "check constraint" in message:
        return "Invalid role or data format"
    if "policy" in message:
        return "Profile creation not allowed - ensure invitation is valid"
    return "Failed to create profile"


class InvitationService:
    """
    Finalizes invitations.

    Uses the service-role repository, so every authorization decision is
    made here: the caller must be the identity being finalized, and the
    invitation must still be pending for that email.
    """

    def __init__(
        self,
        repository: InvitationRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def accept(
        self,
        request: AcceptInvitationRequest,
        caller: AuthenticatedUser,
    ) -> dict[str, Any]:
        """
        Accept an invitation for the calling user.

        Returns:
            The created or updated profile row

        Raises:
            ValidationError: Missing fields or unknown role
            AuthorizationError: Caller is not the user being finalized
            InvalidInvitationError: Invitation missing, accepted or expired
            ProfileWriteError: The profile could not be written
        """
        missing = request.missing_fields()
        if missing:
            raise ValidationError(
                "Missing required fields: id, email, full_name, role, invitation_id",
                code="MISSING_FIELDS",
                details={"missing": missing},
            )

        try:
            role = UserRole(request.role)
        except ValueError:
            raise ValidationError(
                "Invalid role. Must be owner, admin, or officer",
                code="INVALID_ROLE",
            )

        email = request.email.strip().lower()
        if caller.id != request.id or (caller.email and caller.email.strip().lower() != email):
            raise AuthorizationError(
                "You can only accept invitations for your own account",
                code="CALLER_MISMATCH",
            )

        now = self._clock()
        invitation = self._repository.get_pending(request.invitation_id, email, now)
        if invitation is None:
            raise InvalidInvitationError()

        fields = {
            "email": email,
            "full_name": request.full_name.strip(),
            "role": role.value,
            "invited_by": request.invited_by,
            "is_active": request.is_active,
            "updated_at": now.isoformat(),
        }

        try:
            if self._repository.profile_exists(request.id):
                profile = self._repository.update_profile(request.id, fields)
            else:
                profile = self._repository.insert_profile(
                    {"id": request.id, "created_at": now.isoformat(), **fields}
                )
        except Exception as e:
            logger.error("Profile creation error: %s", e)
            raise ProfileWriteError(_profile_error_message(e))

        if profile is None:
            raise ProfileWriteError()

        try:
            self._repository.mark_accepted(request.invitation_id, now)
        except Exception as e:
            # The profile exists; a stale invitation row is recoverable
            logger.error("Failed to mark invitation %s as accepted: %s", request.invitation_id, e)

        logger.info("Invitation %s accepted as %s", request.invitation_id, role.value)
        return profile
