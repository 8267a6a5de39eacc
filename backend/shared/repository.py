"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

from datetime import datetime, timezone
from typing import TypeVar, Generic, Optional


C = TypeVar("C")


class BaseRepository(Generic[C]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db (sync or async client)
    - Timestamp formatting for PostgREST filters

    Subclasses should implement domain-specific data access methods and
    return raw rows; parsing into models happens at the caller's boundary.

    Example:
        class ProfileRepository(BaseRepository[Client]):
            def get(self, user_id: str) -> Optional[dict]:
                result = self._db.table("profiles").select("*").eq("id", user_id).execute()
                return result.data[0] if result.data else None
    """

    def __init__(self, db: C) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    @staticmethod
    def _now_iso(now: Optional[datetime] = None) -> str:
        """ISO-8601 UTC timestamp, as PostgREST expects in filters."""
        return (now or datetime.now(timezone.utc)).isoformat()

    @staticmethod
    def _first(data: Optional[list[dict]]) -> Optional[dict]:
        if not data:
            return None
        return data[0]
