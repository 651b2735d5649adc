"""Review submission and status reconciliation.

The display status is derived from reviews on every read. To keep the stored
lifecycle status from drifting away from it, every review submission
reconciles the article, and ``reconcile_all`` sweeps articles written before
reconciliation existed.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any

from dpub.config import SUMMED_SCALE_MAX
from dpub.errors import DuplicateDocumentError, NotFoundError, StateConflictError, ValidationError
from dpub.models.article import Article, validate_article_id
from dpub.reviews.models import Recommendation, Review, ReviewSummary, StatusView
from dpub.reviews.scoring import aggregate_reviews
from dpub.reviews.status import reconciled_status, resolve_display_status
from dpub.store import ARTICLES, REVIEWS, DocumentStore

logger = logging.getLogger(__name__)

VALID_RECOMMENDATIONS: list[str] = [r.value for r in Recommendation]


def review_id_for(article_id: str, reviewer_id: str) -> str:
    # ":" is outside the article id alphabet
    return f"{article_id}:{reviewer_id}"


class ReviewService:
    """Stores reviews and derives article status from them."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def _get_article(self, article_id: str) -> Article:
        validate_article_id(article_id)
        record = self._store.get(ARTICLES, article_id)
        if record is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")
        return Article.from_record(record)

    def submit_review(
        self,
        article_id: str,
        reviewer_id: str,
        score: Any,
        recommendation: Any,
        comments: str = "",
    ) -> Review:
        """Store one reviewer's review and reconcile the article's status."""
        article = self._get_article(article_id)
        if article.is_removed:
            raise StateConflictError(
                "This article has already been removed", code="ARTICLE_ALREADY_REMOVED"
            )

        # bool is an int subclass and never a valid score
        if isinstance(score, bool) or not isinstance(score, numbers.Real) or not 0 <= score <= SUMMED_SCALE_MAX:
            raise ValidationError(
                f"Score must be a number between 0 and {SUMMED_SCALE_MAX:g}",
                code="INVALID_SCORE",
            )
        if recommendation not in VALID_RECOMMENDATIONS:
            raise ValidationError(
                "Invalid recommendation",
                code="INVALID_RECOMMENDATION",
                details={"validRecommendations": VALID_RECOMMENDATIONS},
            )
        if comments is not None and not isinstance(comments, str):
            raise ValidationError("Comments must be a string", code="INVALID_COMMENTS")

        review = Review(
            id=review_id_for(article_id, reviewer_id),
            article_id=article_id,
            reviewer_id=reviewer_id,
            score=float(score),
            recommendation=recommendation,
            comments=comments or "",
        )
        try:
            self._store.create(
                REVIEWS, review.to_record(), doc_id=review.id, unique_on=("articleId", "reviewerId")
            )
        except DuplicateDocumentError:
            raise StateConflictError(
                "You have already reviewed this article", code="ALREADY_REVIEWED"
            ) from None

        self._store.transform(
            ARTICLES, article_id, lambda doc: {**doc, "reviewCount": (doc.get("reviewCount") or 0) + 1}
        )
        logger.info("Review %s submitted for article %s", review.id, article_id)
        self.reconcile(article_id)
        return review

    def get_reviews(self, article_id: str) -> list[Review]:
        return [
            Review.from_record(d)
            for d in self._store.query(REVIEWS, where={"articleId": article_id}, order_by="createdAt")
        ]

    def summarize(self, article_id: str) -> ReviewSummary:
        return aggregate_reviews(self.get_reviews(article_id))

    def review_status(self, article_id: str) -> tuple[Article, ReviewSummary, StatusView]:
        """Return the article, its review summary and its display status."""
        article = self._get_article(article_id)
        summary = self.summarize(article_id)
        return article, summary, resolve_display_status(article.status, summary)

    def reconcile(self, article_id: str) -> str:
        """Write the review outcome back to the stored status; return it."""
        article = self._get_article(article_id)
        target = reconciled_status(article.status, self.summarize(article_id))
        if target != article.status:
            self._store.update(ARTICLES, article_id, {"status": target})
            logger.info("Article %s status reconciled: %s -> %s", article_id, article.status, target)
        return target

    def reconcile_all(self) -> dict[str, str]:
        """Reconcile every article. Returns ``{article_id: new_status}`` for changes."""
        changed: dict[str, str] = {}
        for article_id in self._store.list_ids(ARTICLES):
            before = Article.from_record(self._store.get(ARTICLES, article_id)).status
            after = self.reconcile(article_id)
            if after != before:
                changed[article_id] = after
        return changed
