"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together the module
implementations the API needs. Each is created lazily on first access
and cached until reset().
"""

from typing import TYPE_CHECKING

# Type checking imports (avoids importing Supabase at module load)
if TYPE_CHECKING:
    from modules.auth.supabase_provider import SupabaseSessionRevoker
    from modules.invitations.service import InvitationService


class ServiceContainer:
    """
    Container for all service instances.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self) -> None:
        self._invitation_service: "InvitationService | None" = None
        self._session_revoker: "SupabaseSessionRevoker | None" = None

    @property
    def invitations(self) -> "InvitationService":
        """Get the invitation service instance."""
        if self._invitation_service is None:
            from modules.invitations.repository import InvitationRepository
            from modules.invitations.service import InvitationService
            from shared.database import get_supabase_client
            self._invitation_service = InvitationService(
                InvitationRepository(get_supabase_client())
            )
        return self._invitation_service

    @property
    def session_revoker(self) -> "SupabaseSessionRevoker":
        """Get the session revoker instance."""
        if self._session_revoker is None:
            from modules.auth.supabase_provider import SupabaseSessionRevoker
            from shared.database import get_supabase_client
            self._session_revoker = SupabaseSessionRevoker(get_supabase_client())
        return self._session_revoker

    def reset(self) -> None:
        """Reset all cached services."""
        self._invitation_service = None
        self._session_revoker = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_invitation_service() -> "InvitationService":
    """FastAPI dependency for the invitation service."""
    return get_container().invitations


def get_session_revoker() -> "SupabaseSessionRevoker":
    """FastAPI dependency for the session revoker."""
    return get_container().session_revoker
