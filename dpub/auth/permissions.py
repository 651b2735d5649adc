"""Role-based access control.

Role hierarchy: admin > junior_admin > reviewer > author
"""

from __future__ import annotations

from dpub.auth.models import Role, User
from dpub.errors import PermissionDeniedError


def has_permission(user: User, required_role: Role) -> bool:
    """Check if a user's role meets or exceeds the required role level."""
    user_role = user.role if isinstance(user.role, Role) else Role(user.role)
    return user_role.level >= required_role.level


def require_role(user: User, role: Role) -> None:
    """Raise ``PermissionDeniedError`` unless *user* has at least *role*."""
    if not has_permission(user, role):
        raise PermissionDeniedError(
            f"Requires role '{role.value}' or higher",
            details={"requiredRole": role.value},
        )
