"""
Invitation data access.

- SupabaseInvitationStore: async, runs as the signed-in user (RLS applies)
- InvitationRepository: sync, service-role, used by the finalize endpoint
"""

from datetime import datetime
from typing import Any, Optional

from supabase import AsyncClient, Client

from shared.exceptions import ExternalServiceError
from shared.repository import BaseRepository

from .interfaces import IInvitationStore


class SupabaseInvitationStore(BaseRepository[AsyncClient], IInvitationStore):
    """Looks up pending invitations for the accepting user."""

    async def find_pending(self, email: str, now: datetime) -> Optional[dict[str, Any]]:
        try:
            result = await (
                self._db.table("invitations")
                .select("*")
                .eq("email", email)
                .is_("accepted_at", "null")
                .gt("expires_at", self._now_iso(now))
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise ExternalServiceError(str(e), service="invitations")
        return self._first(result.data)


class InvitationRepository(BaseRepository[Client]):
    """
    Repository for invitation acceptance writes.

    Note: This repository does NOT perform authorization checks.
    The service layer is responsible for verifying the caller.
    """

    def get_pending(self, invitation_id: str, email: str, now: datetime) -> Optional[dict[str, Any]]:
        result = (
            self._db.table("invitations")
            .select("*")
            .eq("id", invitation_id)
            .eq("email", email)
            .is_("accepted_at", "null")
            .gt("expires_at", self._now_iso(now))
            .limit(1)
            .execute()
        )
        return self._first(result.data)

    def profile_exists(self, user_id: str) -> bool:
        result = self._db.table("profiles").select("id").eq("id", user_id).limit(1).execute()
        return bool(result.data)

    def update_profile(self, user_id: str, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        result = self._db.table("profiles").update(data).eq("id", user_id).execute()
        return self._first(result.data)

    def insert_profile(self, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        result = self._db.table("profiles").insert(data).execute()
        return self._first(result.data)

    def mark_accepted(self, invitation_id: str, now: datetime) -> None:
        (
            self._db.table("invitations")
            .update({"accepted_at": self._now_iso(now)})
            .eq("id", invitation_id)
            .execute()
        )
