"""
Invitations module.

Accepting an invitation: the client-side acceptance workflow and the
server-side service behind the finalize-invitation endpoint.

Public API:
- InvitationAcceptanceFlow: verify -> submit workflow for the invited user
- InvitationService: finalizes an acceptance (profile + accepted_at)
- IInvitationStore / IInvitationFinalizer: what the flow depends on

Supabase and HTTP wiring: factory.create_invitation_flow.
"""

from .interfaces import IInvitationStore, IInvitationFinalizer
from .models import (
    AcceptanceResult,
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    Invitation,
    InvitationFlowState,
)
from .exceptions import (
    FinalizeInvitationError,
    InvalidInvitationError,
    InvitationStateError,
    InvitationValidationError,
    InvitationVerificationError,
    NoValidInvitationError,
    NotSignedInError,
    PasswordReauthenticationRequiredError,
    ProfileWriteError,
    SessionExpiredError,
)
from .flow import InvitationAcceptanceFlow, PasswordErrorKind, classify_password_error
from .service import InvitationService

__all__ = [
    # Interfaces
    "IInvitationStore",
    "IInvitationFinalizer",
    # Models
    "AcceptanceResult",
    "AcceptInvitationRequest",
    "AcceptInvitationResponse",
    "Invitation",
    "InvitationFlowState",
    # Implementations
    "InvitationAcceptanceFlow",
    "InvitationService",
    "PasswordErrorKind",
    "classify_password_error",
    # Exceptions
    "FinalizeInvitationError",
    "InvalidInvitationError",
    "InvitationStateError",
    "InvitationValidationError",
    "InvitationVerificationError",
    "NoValidInvitationError",
    "NotSignedInError",
    "PasswordReauthenticationRequiredError",
    "ProfileWriteError",
    "SessionExpiredError",
]
