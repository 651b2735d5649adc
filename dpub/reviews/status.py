"""Article status resolution.

``resolve_display_status`` is the read-side projection shown to users. Once
the required reviews are in, it follows the review outcome and ignores the
stored lifecycle status. ``reconciled_status`` is the write-side counterpart:
the persisted status the article should be moved to so the two agree.
"""

from __future__ import annotations

from dpub.config import REQUIRED_REVIEWS
from dpub.models.article import ArticleStatus
from dpub.reviews.models import DisplayStatus, ReviewSummary, StatusView

_STORED_TO_DISPLAY = {
    ArticleStatus.pending.value: DisplayStatus.PENDING,
    ArticleStatus.under_review.value: DisplayStatus.UNDER_REVIEW,
    ArticleStatus.accepted.value: DisplayStatus.ACCEPTED,
    ArticleStatus.rejected.value: DisplayStatus.REJECTED,
}


def resolve_display_status(stored_status: str, summary: ReviewSummary) -> StatusView:
    """Map the stored status plus the review summary to a display status."""
    if summary.review_count >= REQUIRED_REVIEWS:
        if summary.passes_threshold:
            return StatusView(DisplayStatus.ACCEPTED)
        return StatusView(DisplayStatus.REJECTED)

    if isinstance(stored_status, ArticleStatus):
        stored_status = stored_status.value
    status = _STORED_TO_DISPLAY.get(stored_status, DisplayStatus.DRAFT)
    if status is DisplayStatus.UNDER_REVIEW:
        return StatusView(status, progress=summary.review_count / REQUIRED_REVIEWS)
    return StatusView(status)


def reconciled_status(stored_status: str, summary: ReviewSummary) -> str:
    """Return the persisted status that matches what users are shown."""
    if summary.review_count >= REQUIRED_REVIEWS:
        if summary.passes_threshold:
            return ArticleStatus.accepted.value
        return ArticleStatus.rejected.value
    if isinstance(stored_status, ArticleStatus):
        return stored_status.value
    return stored_status
