"""
Shared infrastructure for the panel backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- validation: Email, password, UUID and name checks

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import (
    get_supabase_client,
    create_supabase_async_client,
    reset_client_cache,
)
from .exceptions import (
    PanelError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    RateLimitError,
    ExternalServiceError,
)
from .models import AuthenticatedUser, Identity

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "create_supabase_async_client",
    "reset_client_cache",
    "PanelError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "RateLimitError",
    "ExternalServiceError",
    "AuthenticatedUser",
    "Identity",
]
