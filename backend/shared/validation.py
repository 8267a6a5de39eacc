"""
Input validation helpers.

Syntactic checks shared by the session core, the invitation flow and the
API. These run before any network call; failing input never reaches the
identity provider or the database.
"""

import re
from typing import Any, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError


UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_EMAIL_ADAPTER = TypeAdapter(EmailStr)

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 72  # bcrypt limit
MIN_FULL_NAME_LENGTH = 2
MAX_FULL_NAME_LENGTH = 100

SPECIAL_CHARACTERS = "@$!%*?&#^()_+-=[]{};':\"\\|,.<>/?"

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")

PASSWORD_POLICY_MESSAGE = (
    f"Password must be {MIN_PASSWORD_LENGTH}-{MAX_PASSWORD_LENGTH} characters "
    "with at least one uppercase letter, one lowercase letter, one digit, "
    "and one special character"
)


def normalize_email(email: Optional[str]) -> str:
    """Trim and lowercase an email address."""
    return (email or "").strip().lower()


def is_valid_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return UUID_REGEX.fullmatch(value) is not None


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    if len(value) > MAX_EMAIL_LENGTH:
        return False
    try:
        normalized = _EMAIL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        return False
    # EmailStr also accepts "Name <addr>"; only a bare address is valid here
    return normalized.lower() == value.lower()


def password_violation(password: Optional[str]) -> Optional[str]:
    """
    Return the first password policy violation, or None if the password passes.

    Checks run in a fixed order so callers can show one message at a time:
    length, uppercase, lowercase, digit, special character.
    """
    if not password:
        return "Password is required"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if len(password) > MAX_PASSWORD_LENGTH:
        return f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
    if not _UPPER.search(password):
        return "Password must contain at least one uppercase letter"
    if not _LOWER.search(password):
        return "Password must contain at least one lowercase letter"
    if not _DIGIT.search(password):
        return "Password must contain at least one number"
    if not _SPECIAL.search(password):
        return "Password must contain at least one special character"
    return None


def is_valid_password(password: Optional[str]) -> bool:
    return password_violation(password) is None


def is_valid_full_name(name: Any) -> bool:
    if not isinstance(name, str) or not name:
        return False
    trimmed = name.strip()
    return MIN_FULL_NAME_LENGTH <= len(trimmed) <= MAX_FULL_NAME_LENGTH


def sanitize_error(error: Any) -> str:
    """
    Reduce an arbitrary error to a message that is safe to show to users.

    Raw provider text is never returned except for short plain strings.
    """
    if not error:
        return "An error occurred"
    if isinstance(error, str):
        return "An error occurred" if len(error) > 100 else error
    message = str(getattr(error, "message", None) or error).lower()
    if "permission" in message or "denied" in message:
        return "You do not have permission to perform this action"
    if "network" in message or "timeout" in message:
        return "Network error; please try again"
    return "An error occurred"
