"""
Authentication module.

Client-side session core: identity lifecycle, profile resolution, sign-in
throttling, and role-derived capabilities.

Public API:
- SessionManager: identity/profile state machine
- RoleResolver: capability flags derived from a profile
- RateLimitLedger: sliding-window sign-in throttle
- IIdentityProvider / IProfileStore: what the core depends on
- Auth exceptions: InvalidCredentialsError, RateLimitExceededError, etc.

Supabase wiring lives in supabase_provider.py and factory.py
(create_session_manager).

SECURITY: every capability computed here is advisory UI state. The API and
the database's row-level security enforce authorization on their own.
"""

from .interfaces import IIdentityProvider, IProfileStore, INavigator, ISessionManager
from .models import (
    AuthSession,
    Profile,
    ROLE_HIERARCHY,
    SessionState,
    SessionStatus,
    UserRole,
    parse_profile,
)
from .exceptions import (
    IdentityProviderError,
    InactiveAccountError,
    InvalidCredentialsError,
    ProfileIntegrityError,
    ProfileStoreError,
    RateLimitExceededError,
    TransientFetchError,
)
from .rate_limiter import RateLimitLedger
from .roles import RoleResolver, RESOURCE_PERMISSIONS
from .session import SessionManager

__all__ = [
    # Interfaces
    "IIdentityProvider",
    "IProfileStore",
    "INavigator",
    "ISessionManager",
    # Models
    "AuthSession",
    "Profile",
    "ROLE_HIERARCHY",
    "SessionState",
    "SessionStatus",
    "UserRole",
    "parse_profile",
    # Implementations
    "SessionManager",
    "RoleResolver",
    "RESOURCE_PERMISSIONS",
    "RateLimitLedger",
    # Exceptions
    "IdentityProviderError",
    "InactiveAccountError",
    "InvalidCredentialsError",
    "ProfileIntegrityError",
    "ProfileStoreError",
    "RateLimitExceededError",
    "TransientFetchError",
]
