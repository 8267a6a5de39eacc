"""
Role and capability derivation.

Everything here is a pure function of the current profile and loading flag.

SECURITY: these checks drive what the panel shows. They are never an
authorization decision. The API routes and the database's row-level
security policies enforce permissions independently of this module.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .models import Profile, ROLE_HIERARCHY, UserRole


RoleLike = Union[UserRole, str]

# Resource/action matrix used by navigation and page guards
RESOURCE_PERMISSIONS: dict[str, dict[str, frozenset[UserRole]]] = {
    "classes": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "create": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "delete": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
    "events": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "create": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "delete": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
    "team": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "create": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "delete": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
    "users": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "create": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN}),
        "delete": frozenset({UserRole.OWNER}),
    },
    "hsk": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "create": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "delete": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
    "inquiries": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "edit": frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER}),
        "delete": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
    "audit_logs": {
        "view": frozenset({UserRole.OWNER, UserRole.ADMIN}),
    },
}

_STAFF = frozenset({UserRole.OWNER, UserRole.ADMIN, UserRole.OFFICER})
_MANAGERS = frozenset({UserRole.OWNER, UserRole.ADMIN})


def _coerce(role: RoleLike) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


@dataclass(frozen=True)
class RoleResolver:
    """
    Capability view over a profile.

    Build a new one whenever the session state changes; instances hold no
    state of their own beyond the inputs.
    """

    profile: Optional[Profile] = None
    loading: bool = False

    @property
    def role(self) -> Optional[UserRole]:
        return self.profile.role if self.profile else None

    @property
    def is_active(self) -> bool:
        return self.profile is not None and self.profile.is_active is True

    def _granted(self, role: UserRole) -> bool:
        # No capability while a fetch is outstanding, even with a stale profile
        return not self.loading and self.is_active and self.role == role

    @property
    def is_owner(self) -> bool:
        return self._granted(UserRole.OWNER)

    @property
    def is_admin(self) -> bool:
        return self._granted(UserRole.ADMIN)

    @property
    def is_officer(self) -> bool:
        return self._granted(UserRole.OFFICER)

    @property
    def is_admin_or_owner(self) -> bool:
        return self.is_owner or self.is_admin

    def has_permission(self, required_role: RoleLike) -> bool:
        """True if the user's role is at or above ``required_role``."""
        if self.profile is None:
            return False
        required = _coerce(required_role)
        if required is None:
            return False
        return ROLE_HIERARCHY[self.profile.role] >= ROLE_HIERARCHY[required]

    def can_manage_users(self) -> bool:
        return self.role in _MANAGERS

    def can_manage_role(self, target_role: RoleLike) -> bool:
        """True if the user's role is strictly above ``target_role``."""
        target = _coerce(target_role)
        if self.profile is None or target is None:
            return False
        return ROLE_HIERARCHY[self.profile.role] > ROLE_HIERARCHY[target]

    def can_invite(self, role_to_invite: RoleLike) -> bool:
        """Owners may invite anyone; admins may invite officers only."""
        if self.profile is None:
            return False
        if self.role == UserRole.OWNER:
            return True
        return self.role == UserRole.ADMIN and _coerce(role_to_invite) == UserRole.OFFICER

    def can_edit(self, resource: Optional[str] = None) -> bool:
        # Finer per-resource rules are enforced server-side
        return self.role in _STAFF

    def can_delete(self) -> bool:
        return self.role in _MANAGERS

    def can_view_audit_logs(self) -> bool:
        return self.role in _MANAGERS

    def has_resource_permission(self, resource: str, action: str) -> bool:
        if self.role is None:
            return False
        allowed = RESOURCE_PERMISSIONS.get(resource, {}).get(action)
        if not allowed:
            return False
        return self.role in allowed
