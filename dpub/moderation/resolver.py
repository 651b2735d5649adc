"""Moderation resolution for flagged articles.

An admin decision touches the article, every flag on it, and the audit log.
The store has no multi-document transactions, so a resolution runs as a
resumable sequence:

1. write a ``pendingResolution`` marker on the article (at most one at a time)
2. resolve each flag (skipped when already resolved the same way)
3. set the article's moderation status, notes and moderator
4. write the AdminLog entry under the id reserved in the marker
5. clear the marker

Each step is idempotent. A crash leaves the marker behind, and ``resume``
finishes the same resolution without duplicating the audit entry.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from dpub.auth.models import User
from dpub.config import MAX_NOTES_LENGTH
from dpub.errors import ConflictError, NotFoundError, ValidationError
from dpub.models.article import Article, ModerationStatus, validate_article_id
from dpub.moderation.models import (
    Flag,
    FlaggedArticle,
    FlagStatus,
    ModerationAction,
    ModerationOutcome,
)
from dpub.security.audit_log import AdminActionType, AdminLogger
from dpub.store import ARTICLES, FLAGS, DocumentStore
from dpub.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

# approving the article means the flags were unfounded, and vice versa
_OUTCOMES = {
    ModerationAction.approve.value: (
        ModerationStatus.active.value,
        FlagStatus.rejected.value,
        AdminActionType.article_approve,
    ),
    ModerationAction.reject.value: (
        ModerationStatus.removed.value,
        FlagStatus.accepted.value,
        AdminActionType.article_reject,
    ),
}

QUEUE_STATUSES = ("all",) + tuple(s.value for s in ModerationStatus)


class ModerationResolver:
    """Applies admin decisions to flagged articles and serves the queue."""

    def __init__(self, store: DocumentStore, audit: AdminLogger) -> None:
        self._store = store
        self._audit = audit

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        article_id: str,
        action: str,
        notes: Optional[str],
        admin: User,
    ) -> ModerationOutcome:
        """Approve (keep) or reject (remove) a flagged article."""
        validate_article_id(article_id)
        if isinstance(action, ModerationAction):
            action = action.value
        if action not in _OUTCOMES:
            raise ValidationError(
                "Action must be 'approve' or 'reject'",
                code="INVALID_ACTION",
                details={"validActions": list(_OUTCOMES)},
            )
        notes = "" if notes is None else notes
        if not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(
                f"Notes must be a string with maximum {MAX_NOTES_LENGTH} characters",
                code="INVALID_NOTES",
            )

        if self._store.get(ARTICLES, article_id) is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")

        def _mark(doc: dict) -> dict:
            pending = doc.get("pendingResolution")
            if pending:
                raise ConflictError(
                    "Another moderation decision is in progress for this article",
                    code="RESOLUTION_IN_PROGRESS",
                    details={
                        "action": pending.get("action"),
                        "adminId": pending.get("adminId"),
                        "startedAt": pending.get("startedAt"),
                    },
                )
            doc["pendingResolution"] = {
                "action": action,
                "notes": notes,
                "adminId": admin.id,
                "adminEmail": admin.email,
                "adminRole": admin.role.value,
                "previousStatus": doc.get("moderationStatus") or ModerationStatus.active.value,
                "logId": self._store.new_id(),
                "startedAt": utc_now(),
            }
            return doc

        marked = self._store.transform(ARTICLES, article_id, _mark)
        logger.info("Moderation %s started for article %s by %s", action, article_id, admin.id)
        return self._complete(article_id, marked["pendingResolution"])

    def pending_resolutions(self) -> list[Article]:
        """Articles whose last resolution did not run to completion."""
        return [
            Article.from_record(d)
            for d in self._store.query(ARTICLES, order_by="createdAt")
            if d.get("pendingResolution")
        ]

    def resume(self, article_id: str) -> ModerationOutcome:
        """Finish an interrupted resolution using the marker's decision."""
        validate_article_id(article_id)
        record = self._store.get(ARTICLES, article_id)
        if record is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")
        marker = record.get("pendingResolution")
        if not marker:
            raise ConflictError(
                "No moderation decision is pending for this article",
                code="NO_PENDING_RESOLUTION",
            )
        logger.info("Resuming moderation %s for article %s", marker.get("action"), article_id)
        return self._complete(article_id, marker)

    def _complete(self, article_id: str, marker: dict[str, Any]) -> ModerationOutcome:
        action = marker["action"]
        new_status, flag_status, action_type = _OUTCOMES[action]
        admin_id = marker["adminId"]
        now = utc_now()

        flags = self.get_flags(article_id)
        resolved = 0
        for flag in flags:
            if flag.status == flag_status and flag.resolved_by == admin_id:
                continue
            self._store.update(
                FLAGS, flag.id, {"status": flag_status, "resolvedBy": admin_id, "resolvedAt": now}
            )
            resolved += 1

        self._store.update(
            ARTICLES,
            article_id,
            {
                "moderationStatus": new_status,
                "moderationNotes": marker.get("notes", ""),
                "moderatedBy": admin_id,
                "moderatedAt": now,
            },
        )

        admin = User(
            id=admin_id,
            email=marker.get("adminEmail", ""),
            role=marker.get("adminRole") or "admin",
        )
        entry = self._audit.log_action(
            admin,
            action_type,
            target_type="article",
            target_id=article_id,
            details={
                "previousStatus": marker.get("previousStatus"),
                "newStatus": new_status,
                "notes": marker.get("notes", ""),
                "flagCount": len(flags),
                "categories": sorted({f.category for f in flags}),
            },
            log_id=marker["logId"],
        )

        self._store.update(ARTICLES, article_id, {"pendingResolution": None})
        logger.info(
            "Article %s moderated: %s -> %s (%d flags updated)",
            article_id, marker.get("previousStatus"), new_status, resolved,
        )
        return ModerationOutcome(
            article_id=article_id,
            action=action,
            previous_status=marker.get("previousStatus", ""),
            moderation_status=new_status,
            flags_resolved=resolved,
            log_id=entry.id,
        )

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def get_flags(self, article_id: str) -> list[Flag]:
        return [
            Flag.from_record(d)
            for d in self._store.query(
                FLAGS, where={"articleId": article_id}, order_by="timestamp", descending=True
            )
        ]

    def get_flagged_article(self, article_id: str) -> FlaggedArticle:
        validate_article_id(article_id)
        record = self._store.get(ARTICLES, article_id)
        if record is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")
        return FlaggedArticle(article=Article.from_record(record), flags=self.get_flags(article_id))

    def moderation_queue(self, status: str = "under_review", limit: int = 50) -> list[FlaggedArticle]:
        """Flagged articles for the admin queue.

        ``all`` lists every flagged article, most flagged first; otherwise
        articles in the given moderation status, most recently flagged first.
        """
        if status not in QUEUE_STATUSES:
            raise ValidationError(
                "Invalid moderation status filter",
                code="INVALID_STATUS",
                details={"validStatuses": list(QUEUE_STATUSES)},
            )

        if status == "all":
            docs = self._store.query(
                ARTICLES, order_by=("flagCount", "lastFlaggedAt"), descending=True
            )
            docs = [d for d in docs if (d.get("flagCount") or 0) > 0]
        else:
            docs = self._store.query(
                ARTICLES,
                where={"moderationStatus": status},
                order_by="lastFlaggedAt",
                descending=True,
            )

        docs = [d for d in docs if not d.get("isDeleted")]
        return [
            FlaggedArticle(article=Article.from_record(d), flags=self.get_flags(d["id"]))
            for d in docs[:limit]
        ]
