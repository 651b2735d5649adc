"""Identity provider integration: users, ID tokens and role checks."""

from dpub.auth.models import Role, User
from dpub.auth.permissions import has_permission, require_role
from dpub.auth.store import IdentityStore
from dpub.auth.tokens import LocalTokenVerifier, RemoteTokenVerifier, build_verifier

__all__ = [
    "Role",
    "User",
    "has_permission",
    "require_role",
    "IdentityStore",
    "LocalTokenVerifier",
    "RemoteTokenVerifier",
    "build_verifier",
]
