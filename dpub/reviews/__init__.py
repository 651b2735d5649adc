"""Peer review: score aggregation and article status resolution."""

from dpub.reviews.models import DisplayStatus, Recommendation, Review, ReviewSummary, StatusView
from dpub.reviews.scoring import aggregate_reviews, normalize_score
from dpub.reviews.service import ReviewService
from dpub.reviews.status import reconciled_status, resolve_display_status

__all__ = [
    "DisplayStatus",
    "Recommendation",
    "Review",
    "ReviewSummary",
    "StatusView",
    "aggregate_reviews",
    "normalize_score",
    "ReviewService",
    "reconciled_status",
    "resolve_display_status",
]
