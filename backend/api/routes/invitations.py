"""
Invitation endpoints.

Finalizes an accepted invitation for the calling user.
"""

from fastapi import APIRouter, Depends

from shared.models import AuthenticatedUser
from modules.invitations.models import AcceptInvitationRequest, AcceptInvitationResponse
from modules.invitations.service import InvitationService
from ..dependencies import get_invitation_service
from ..middleware.auth import get_current_user

router = APIRouter()


@router.post("/accept-invitation", response_model=AcceptInvitationResponse)
async def accept_invitation(
    request: AcceptInvitationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    """
    Create or update the caller's profile from a pending invitation.

    Requires authentication as the user named in the body.
    """
    profile = await service.accept(request, user)
    return AcceptInvitationResponse(success=True, profile=profile)
