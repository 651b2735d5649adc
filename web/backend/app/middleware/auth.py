"""Auth middleware -- FastAPI dependencies for extracting the current user.

Requests authenticate with ``Authorization: Bearer <id_token>``. The token is
checked by the configured verifier (local identity store or the remote
identity provider).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from dpub.auth.models import Role, User
from dpub.auth.permissions import require_role
from dpub.errors import AuthenticationError, InvalidTokenError
from web.backend.app.dependencies import get_token_verifier


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationError("Missing authentication token")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token


async def get_current_user(
    authorization: Optional[str] = Header(None),
    verifier=Depends(get_token_verifier),
) -> User:
    """FastAPI dependency that extracts and validates the current user.

    Raises ``UNAUTHORIZED`` when no bearer token is sent and
    ``INVALID_TOKEN`` when the verifier rejects it.
    """
    token = _bearer_token(authorization)
    try:
        return await verifier.verify_id_token(token)
    except InvalidTokenError:
        raise
    except AuthenticationError as exc:
        raise InvalidTokenError(exc.message) from exc


async def get_reviewer_user(user: User = Depends(get_current_user)) -> User:
    require_role(user, Role.reviewer)
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    """Moderation access: admins and junior admins."""
    require_role(user, Role.junior_admin)
    return user
