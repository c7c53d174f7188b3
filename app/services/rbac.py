"""Role-Based Access Control (RBAC) service."""

from enum import Enum

from app.models.user import UserRole


class Permission(str, Enum):
    """Available permissions in the system."""

    # Patient management
    PATIENTS_READ = "patients:read"
    PATIENTS_WRITE = "patients:write"

    # Care pathways
    PATHWAY_TRANSITION = "pathway:transition"

    # Clinical notes
    CLINICAL_NOTES_READ = "clinical:notes:read"

    # Audit access
    AUDIT_READ = "audit:read"


_CLINICAL_TEAM = {
    Permission.PATIENTS_READ,
    Permission.PATIENTS_WRITE,
    Permission.PATHWAY_TRANSITION,
    Permission.CLINICAL_NOTES_READ,
}

# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.ADMIN: _CLINICAL_TEAM | {Permission.AUDIT_READ},
    UserRole.UROLOGIST: set(_CLINICAL_TEAM),
    UserRole.DOCTOR: set(_CLINICAL_TEAM),
    UserRole.UROLOGY_NURSE: set(_CLINICAL_TEAM),
    # Referring GPs follow their own patients but do not move them
    UserRole.GP: {
        Permission.PATIENTS_READ,
        Permission.CLINICAL_NOTES_READ,
    },
}


def _as_role(role: UserRole | str | None) -> UserRole | None:
    if role is None or isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


class RBACService:
    """Service for checking role-based permissions."""

    @staticmethod
    def get_permissions(role: UserRole | str) -> set[Permission]:
        """Get all permissions for a role.

        Unknown roles have no permissions.
        """
        return ROLE_PERMISSIONS.get(_as_role(role), set())

    @staticmethod
    def has_permission(role: UserRole | str, permission: Permission) -> bool:
        return permission in RBACService.get_permissions(role)

    @staticmethod
    def has_all_permissions(role: UserRole | str, permissions: list[Permission]) -> bool:
        """Check if a role has all specified permissions.

        Args:
            role: User role to check
            permissions: List of permissions (all must match)

        Returns:
            True if role has all permissions
        """
        role_permissions = RBACService.get_permissions(role)
        return all(p in role_permissions for p in permissions)
