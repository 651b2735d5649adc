"""Article record and its two independent status axes.

``status`` tracks scholarly acceptance; ``moderation_status`` tracks content
safety. Only the flag accumulator and the moderation resolver move the
latter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from dpub.errors import ValidationError
from dpub.utils.timestamps import utc_now

_ARTICLE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class ArticleStatus(str, Enum):
    """Persisted lifecycle status."""

    draft = "draft"
    pending = "pending"
    under_review = "under_review"
    accepted = "accepted"
    rejected = "rejected"


class ModerationStatus(str, Enum):
    active = "active"
    under_review = "under_review"
    removed = "removed"


@dataclass
class Article:
    """A submitted article as stored in the ``articles`` collection."""

    id: str
    title: str
    abstract: str = ""
    author_id: str = ""
    status: str = ArticleStatus.pending.value
    moderation_status: str = ModerationStatus.active.value
    flag_count: int = 0
    flagged_by: list[str] = field(default_factory=list)
    last_flagged_at: str = ""
    review_count: int = 0
    is_deleted: bool = False
    moderation_notes: str = ""
    moderated_by: str = ""
    moderated_at: str = ""
    # Durable marker written while a moderation resolution is in flight
    pending_resolution: Optional[dict[str, Any]] = None
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()

    @property
    def is_removed(self) -> bool:
        return self.is_deleted or self.moderation_status == ModerationStatus.removed.value

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "abstract": self.abstract,
            "authorId": self.author_id,
            "status": self.status,
            "moderationStatus": self.moderation_status,
            "flagCount": self.flag_count,
            "flaggedBy": list(self.flagged_by),
            "lastFlaggedAt": self.last_flagged_at,
            "reviewCount": self.review_count,
            "isDeleted": self.is_deleted,
            "moderationNotes": self.moderation_notes,
            "moderatedBy": self.moderated_by,
            "moderatedAt": self.moderated_at,
            "createdAt": self.created_at,
        }
        if self.pending_resolution is not None:
            record["pendingResolution"] = dict(self.pending_resolution)
        return record

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> "Article":
        return cls(
            id=d["id"],
            title=d.get("title", ""),
            abstract=d.get("abstract", ""),
            author_id=d.get("authorId", ""),
            status=d.get("status") or ArticleStatus.draft.value,
            moderation_status=d.get("moderationStatus") or ModerationStatus.active.value,
            flag_count=d.get("flagCount", 0) or 0,
            flagged_by=list(d.get("flaggedBy") or []),
            last_flagged_at=d.get("lastFlaggedAt", "") or "",
            review_count=d.get("reviewCount", 0) or 0,
            is_deleted=bool(d.get("isDeleted", False)),
            moderation_notes=d.get("moderationNotes", "") or "",
            moderated_by=d.get("moderatedBy", "") or "",
            moderated_at=d.get("moderatedAt", "") or "",
            pending_resolution=d.get("pendingResolution"),
            created_at=d.get("createdAt", "") or "",
        )


def validate_article_id(article_id: Any) -> str:
    """Reject ids that are not short url-safe tokens."""
    if not isinstance(article_id, str) or not _ARTICLE_ID_RE.match(article_id):
        raise ValidationError("Invalid article ID", code="INVALID_ARTICLE_ID")
    return article_id
