"""Data models for the content moderation system."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dpub.models.article import Article


class FlagCategory(str, Enum):
    misinformation = "misinformation"
    offensive = "offensive"
    plagiarism = "plagiarism"
    spam = "spam"
    other = "other"


class FlagStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"  # the article was removed
    rejected = "rejected"  # the article was approved


class ModerationAction(str, Enum):
    approve = "approve"
    reject = "reject"


VALID_CATEGORIES: list[str] = [c.value for c in FlagCategory]


@dataclass
class Flag:
    """A user's report against an article. Never deleted."""

    id: str
    article_id: str
    reported_by: str
    category: str
    reason: str = ""
    status: str = FlagStatus.pending.value
    timestamp: str = ""
    resolved_by: str = ""
    resolved_at: str = ""

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "articleId": self.article_id,
            "reportedBy": self.reported_by,
            "reason": self.reason,
            "category": self.category,
            "status": self.status,
            "timestamp": self.timestamp,
        }
        if self.resolved_by:
            record["resolvedBy"] = self.resolved_by
            record["resolvedAt"] = self.resolved_at
        return record

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> "Flag":
        return cls(
            id=d["id"],
            article_id=d.get("articleId", ""),
            reported_by=d.get("reportedBy", ""),
            category=d.get("category", ""),
            reason=d.get("reason", "") or "",
            status=d.get("status", FlagStatus.pending.value),
            timestamp=d.get("timestamp", "") or "",
            resolved_by=d.get("resolvedBy", "") or "",
            resolved_at=d.get("resolvedAt", "") or "",
        )


@dataclass
class FlagOutcome:
    """Result of flagging an article."""

    flag: Flag
    flag_count: int
    moderation_status: str


@dataclass
class ModerationOutcome:
    """Result of resolving a flagged article."""

    article_id: str
    action: str
    previous_status: str
    moderation_status: str
    flags_resolved: int
    log_id: str


@dataclass
class FlaggedArticle:
    """An article in the moderation queue together with its flags."""

    article: Article
    flags: list[Flag] = field(default_factory=list)

    @property
    def flags_by_category(self) -> dict[str, list[Flag]]:
        grouped: dict[str, list[Flag]] = {}
        for flag in self.flags:
            grouped.setdefault(flag.category, []).append(flag)
        return grouped
