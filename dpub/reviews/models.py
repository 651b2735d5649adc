"""Data models for peer reviews and the derived review status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from dpub.utils.timestamps import utc_now


class Recommendation(str, Enum):
    accept = "accept"
    minor_revisions = "minor_revisions"
    major_revisions = "major_revisions"
    reject = "reject"


class DisplayStatus(str, Enum):
    """User-facing status. A read-model projection, never persisted."""

    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DRAFT = "DRAFT"


@dataclass
class Review:
    """A single reviewer's assessment. Immutable once stored."""

    id: str
    article_id: str
    reviewer_id: str
    score: float
    recommendation: str
    comments: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now()

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "articleId": self.article_id,
            "reviewerId": self.reviewer_id,
            "score": self.score,
            "recommendation": self.recommendation,
            "comments": self.comments,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> "Review":
        return cls(
            id=d["id"],
            article_id=d.get("articleId", ""),
            reviewer_id=d.get("reviewerId", ""),
            score=float(d.get("score", 0) or 0),
            recommendation=d.get("recommendation", ""),
            comments=d.get("comments", "") or "",
            created_at=d.get("createdAt", "") or "",
        )


@dataclass(frozen=True)
class ReviewSummary:
    """Aggregate over all reviews of one article."""

    average_score: float
    review_count: int
    passes_threshold: bool


@dataclass(frozen=True)
class StatusView:
    """Resolved display status; ``progress`` is set only while under review."""

    status: DisplayStatus
    progress: Optional[float] = None
