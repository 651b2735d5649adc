"""Local identity store: users and ID tokens.

Backs the identity provider when no remote verification endpoint is
configured. Records live in the ``users`` and ``idTokens`` collections.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from dpub.auth.models import IdToken, Role, User
from dpub.errors import DuplicateDocumentError, InvalidTokenError, NotFoundError, ValidationError
from dpub.store import ID_TOKENS, USERS, DocumentStore

logger = logging.getLogger(__name__)


class IdentityStore:
    """Users and bearer ID tokens on top of a DocumentStore."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @staticmethod
    def _hash_token(raw_token: str) -> str:
        return hashlib.sha256(raw_token.encode()).hexdigest()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(
        self,
        email: str,
        role: Role | str = Role.author,
        display_name: str = "",
        user_id: Optional[str] = None,
    ) -> User:
        """Persist a new user. Emails are unique (case-insensitive)."""
        email = email.strip()
        if "@" not in email:
            raise ValidationError("Invalid email address", code="INVALID_EMAIL")
        if self.get_user_by_email(email) is not None:
            raise ValidationError(
                f"A user with email '{email}' already exists", code="EMAIL_TAKEN"
            )
        user = User(
            id=user_id or self._store.new_id(),
            email=email,
            display_name=display_name,
            role=role,
        )
        try:
            self._store.create(USERS, user.to_record(), doc_id=user.id)
        except DuplicateDocumentError:
            raise ValidationError(
                f"A user with id '{user.id}' already exists", code="USER_EXISTS"
            ) from None
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        d = self._store.get(USERS, user_id)
        return User.from_record(d) if d else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        for d in self._store.query(USERS):
            if d.get("email", "").lower() == email.lower():
                return User.from_record(d)
        return None

    def list_users(self) -> list[User]:
        return [User.from_record(d) for d in self._store.query(USERS, order_by="createdAt")]

    # ------------------------------------------------------------------
    # ID tokens
    # ------------------------------------------------------------------

    def issue_id_token(self, user_id: str, expires_in_hours: int = 24) -> tuple[IdToken, str]:
        """Issue a token for *user_id*. Returns (IdToken, raw_token)."""
        if self.get_user(user_id) is None:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")

        raw_token = f"dpub_{secrets.token_urlsafe(32)}"
        now = datetime.now(timezone.utc)
        token = IdToken(
            id=self._store.new_id(),
            user_id=user_id,
            token_hash=self._hash_token(raw_token),
            created_at=now.isoformat(),
            expires_at=(now + timedelta(hours=expires_in_hours)).isoformat(),
        )
        self._store.create(
            ID_TOKENS,
            {
                "userId": token.user_id,
                "tokenHash": token.token_hash,
                "createdAt": token.created_at,
                "expiresAt": token.expires_at,
            },
            doc_id=token.id,
        )
        return token, raw_token

    def verify_id_token(self, raw_token: str) -> User:
        """Return the user a token belongs to.

        Raises ``InvalidTokenError`` for unknown or expired tokens and for
        tokens whose user no longer exists.
        """
        if not raw_token:
            raise InvalidTokenError("Invalid authentication token")

        matches = self._store.query(
            ID_TOKENS, where={"tokenHash": self._hash_token(raw_token)}, limit=1
        )
        if not matches:
            raise InvalidTokenError("Invalid authentication token")

        record = matches[0]
        now = datetime.now(timezone.utc).isoformat()
        if record.get("expiresAt") and record["expiresAt"] < now:
            logger.warning("Expired ID token used for user %s", record.get("userId"))
            raise InvalidTokenError("Authentication token has expired")

        user = self.get_user(record.get("userId", ""))
        if user is None:
            raise InvalidTokenError("Invalid authentication token")
        return user
