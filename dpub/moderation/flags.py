"""Flag accumulation: users reporting articles.

Each user may flag an article once. The second distinct flag escalates the
article into moderation review; escalation here never goes back down.
"""

from __future__ import annotations

import logging
from typing import Any

from dpub.config import (
    FLAG_ESCALATION_THRESHOLD,
    FLAG_RATE_LIMIT,
    FLAG_RATE_WINDOW_SECONDS,
    MAX_REASON_LENGTH,
)
from dpub.errors import (
    DuplicateDocumentError,
    NotFoundError,
    RateLimitExceededError,
    StateConflictError,
    ValidationError,
)
from dpub.models.article import Article, ModerationStatus, validate_article_id
from dpub.moderation.models import VALID_CATEGORIES, Flag, FlagOutcome, FlagStatus
from dpub.moderation.rate_limit import RateLimiter
from dpub.store import ARTICLES, FLAGS, DocumentStore
from dpub.utils.timestamps import epoch_to_iso, utc_now

logger = logging.getLogger(__name__)

# Sentinel for "no reason field in the request" as opposed to an explicit null
MISSING: Any = object()


def flag_id_for(article_id: str, user_id: str) -> str:
    """Deterministic flag id, so one user maps to one flag per article.

    Article ids never contain ``:``, so the pair is recoverable from the id.
    """
    return f"{article_id}:{user_id}"


class FlagService:
    """Records flags against articles and escalates moderation status."""

    def __init__(self, store: DocumentStore, limiter: RateLimiter) -> None:
        self._store = store
        self._limiter = limiter

    def flag_article(
        self,
        article_id: str,
        user_id: str,
        category: Any,
        reason: Any = MISSING,
    ) -> FlagOutcome:
        """Flag *article_id* on behalf of *user_id*.

        Checks run in a fixed order and nothing is written until all pass.
        """
        validate_article_id(article_id)

        limit = self._limiter.check(f"flag_{user_id}", FLAG_RATE_LIMIT, FLAG_RATE_WINDOW_SECONDS)
        if not limit.success:
            raise RateLimitExceededError(
                "You have reached the maximum number of reports allowed per day",
                details={
                    "limit": limit.limit,
                    "remaining": limit.remaining,
                    "reset": epoch_to_iso(limit.reset),
                },
            )

        if not category or category not in VALID_CATEGORIES:
            raise ValidationError(
                "Invalid category",
                code="INVALID_CATEGORY",
                details={"validCategories": VALID_CATEGORIES},
            )

        if reason is not MISSING and (not isinstance(reason, str) or len(reason) > MAX_REASON_LENGTH):
            raise ValidationError(
                f"Reason must be a string with maximum {MAX_REASON_LENGTH} characters",
                code="INVALID_REASON",
            )

        record = self._store.get(ARTICLES, article_id)
        if record is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")

        article = Article.from_record(record)
        if article.is_removed:
            raise StateConflictError(
                "This article has already been removed", code="ARTICLE_ALREADY_REMOVED"
            )

        if self._store.query(FLAGS, where={"articleId": article_id, "reportedBy": user_id}, limit=1):
            raise StateConflictError(
                "You have already reported this article", code="ALREADY_FLAGGED"
            )

        flag = Flag(
            id=flag_id_for(article_id, user_id),
            article_id=article_id,
            reported_by=user_id,
            category=category,
            reason=reason if isinstance(reason, str) else "",
            status=FlagStatus.pending.value,
            timestamp=utc_now(),
        )
        try:
            self._store.create(
                FLAGS, flag.to_record(), doc_id=flag.id, unique_on=("articleId", "reportedBy")
            )
        except DuplicateDocumentError:
            raise StateConflictError(
                "You have already reported this article", code="ALREADY_FLAGGED"
            ) from None

        updated = self._store.transform(
            ARTICLES, article_id, lambda doc: _apply_flag(doc, user_id, flag.timestamp)
        )
        flag_count = updated["flagCount"]
        moderation_status = updated["moderationStatus"]

        logger.info(
            "Article flagged: article=%s user=%s category=%s flagCount=%d moderationStatus=%s",
            article_id, user_id, category, flag_count, moderation_status,
        )
        if moderation_status == ModerationStatus.under_review.value and article.moderation_status != moderation_status:
            logger.info("Article %s escalated to moderation review", article_id)

        return FlagOutcome(flag=flag, flag_count=flag_count, moderation_status=moderation_status)

    def get_flags(self, article_id: str) -> list[Flag]:
        """Return all flags for an article, newest first."""
        return [
            Flag.from_record(d)
            for d in self._store.query(
                FLAGS, where={"articleId": article_id}, order_by="timestamp", descending=True
            )
        ]


def _apply_flag(doc: dict, user_id: str, flagged_at: str) -> dict:
    flagged_by = list(doc.get("flaggedBy") or [])
    if user_id not in flagged_by:
        flagged_by.append(user_id)
    flag_count = len(flagged_by)

    current = doc.get("moderationStatus") or ModerationStatus.active.value
    # a removal that landed after our pre-check is never undone here
    if flag_count >= FLAG_ESCALATION_THRESHOLD and current != ModerationStatus.removed.value:
        current = ModerationStatus.under_review.value

    doc["flaggedBy"] = flagged_by
    doc["flagCount"] = flag_count
    doc["lastFlaggedAt"] = flagged_at
    doc["moderationStatus"] = current
    return doc
