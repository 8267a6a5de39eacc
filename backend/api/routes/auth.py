"""
Session endpoints.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.models import AuthenticatedUser
from modules.auth.supabase_provider import SupabaseSessionRevoker
from ..dependencies import get_session_revoker
from ..middleware.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class LogoutResponse(BaseModel):
    success: bool


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    revoker: SupabaseSessionRevoker = Depends(get_session_revoker),
) -> LogoutResponse:
    """
    Revoke the caller's session at the identity provider.

    Always reports success to the client, which clears its local state
    regardless; a failed revocation is logged.
    """
    try:
        revoker.revoke(user.access_token)
    except Exception as e:
        logger.warning("Session revocation failed for %s: %s", user.id, type(e).__name__)
    return LogoutResponse(success=True)
