"""Identity models: users and the ID tokens that authenticate them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from dpub.utils.timestamps import utc_now


class Role(str, Enum):
    """Role hierarchy: admin > junior_admin > reviewer > author."""

    admin = "admin"
    junior_admin = "junior_admin"
    reviewer = "reviewer"
    author = "author"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.admin: 40,
            Role.junior_admin: 30,
            Role.reviewer: 20,
            Role.author: 10,
        }[self]


@dataclass
class User:
    """A user known to the identity provider."""

    id: str
    email: str
    display_name: str = ""
    role: Role = Role.author
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()
        if isinstance(self.role, str):
            self.role = Role(self.role)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "role": self.role.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> "User":
        role_val = d.get("role", Role.author.value)
        try:
            role = Role(role_val)
        except ValueError:
            role = Role.author
        return cls(
            id=d["id"],
            email=d.get("email", ""),
            display_name=d.get("displayName", ""),
            role=role,
            created_at=d.get("createdAt", ""),
        )


@dataclass
class IdToken:
    """Stored form of an issued ID token (the raw token is never stored)."""

    id: str
    user_id: str
    token_hash: str
    created_at: str
    expires_at: str
