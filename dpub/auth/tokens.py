"""ID token verification against the identity provider.

When ``identity_verify_url`` is not configured, tokens are checked against
the local ``IdentityStore`` (demo mode). Otherwise the token is posted to the
provider's verification endpoint, which answers with the user's claims.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from dpub.auth.models import Role, User
from dpub.auth.store import IdentityStore
from dpub.config import Settings
from dpub.errors import InternalServerError, InvalidTokenError

logger = logging.getLogger(__name__)


class LocalTokenVerifier:
    """Verify tokens issued by the local identity store."""

    def __init__(self, identity: IdentityStore) -> None:
        self._identity = identity

    async def verify_id_token(self, token: str) -> User:
        return self._identity.verify_id_token(token)


class RemoteTokenVerifier:
    """Verify tokens with a remote identity provider over HTTP.

    The endpoint receives ``{"idToken": <token>}`` and must answer 2xx with
    ``{"uid": ..., "email": ..., "role"?: ..., "displayName"?: ...}``.
    """

    def __init__(
        self,
        verify_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._verify_url = verify_url
        self._timeout = timeout
        self._transport = transport

    async def verify_id_token(self, token: str) -> User:
        if not token:
            raise InvalidTokenError("Invalid authentication token")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self._verify_url,
                    json={"idToken": token},
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %s", exc)
            raise InternalServerError("Identity provider unavailable") from exc

        if resp.status_code >= 400:
            logger.warning("Identity provider rejected token (HTTP %s)", resp.status_code)
            raise InvalidTokenError("Invalid authentication token")

        claims = resp.json()
        uid = claims.get("uid")
        if not uid:
            raise InvalidTokenError("Identity provider returned no user id")

        try:
            role = Role(claims.get("role") or Role.author.value)
        except ValueError:
            role = Role.author
        return User(
            id=uid,
            email=claims.get("email", ""),
            display_name=claims.get("displayName", ""),
            role=role,
        )


def build_verifier(settings: Settings, identity: IdentityStore):
    """Pick the verifier for the configured identity provider."""
    if settings.identity_verify_url:
        return RemoteTokenVerifier(settings.identity_verify_url)
    return LocalTokenVerifier(identity)
