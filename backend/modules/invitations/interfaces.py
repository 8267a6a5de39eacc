"""
Invitation module interfaces.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .models import AcceptInvitationRequest


@runtime_checkable
class IInvitationStore(Protocol):
    """Read access to invitations for the signed-in user."""

    async def find_pending(self, email: str, now: datetime) -> Optional[dict[str, Any]]:
        """
        Newest invitation for ``email`` that is unaccepted and unexpired at ``now``.

        Returns:
            The raw row, or None
        """
        ...


@runtime_checkable
class IInvitationFinalizer(Protocol):
    """Calls the finalize-invitation endpoint."""

    async def finalize(self, request: AcceptInvitationRequest) -> dict[str, Any]:
        """
        Raises:
            FinalizeInvitationError: On any non-2xx response
        """
        ...
