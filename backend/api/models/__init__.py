"""API models package."""

from .errors import ErrorResponse
from .user import TokenPayload

__all__ = [
    "ErrorResponse",
    "TokenPayload",
]
