"""Reviews router -- review submission and the derived review status."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dpub.auth.models import User
from dpub.config import REQUIRED_REVIEWS
from dpub.reviews.models import Review
from dpub.reviews.service import ReviewService
from web.backend.app.dependencies import get_review_service
from web.backend.app.middleware.auth import get_reviewer_user
from web.backend.app.models.api import ReviewResponse, ReviewStatusResponse, SubmitReviewRequest

router = APIRouter(prefix="/api/v1/articles", tags=["reviews"])


def _review_response(r: Review) -> ReviewResponse:
    return ReviewResponse(
        id=r.id,
        article_id=r.article_id,
        reviewer_id=r.reviewer_id,
        score=r.score,
        recommendation=r.recommendation,
        comments=r.comments,
        created_at=r.created_at,
    )


@router.post("/{article_id}/reviews", response_model=ReviewResponse, status_code=201)
async def submit_review(
    article_id: str,
    request: SubmitReviewRequest,
    user: User = Depends(get_reviewer_user),
    reviews: ReviewService = Depends(get_review_service),
):
    """Submit a review. Each reviewer may review an article once."""
    review = reviews.submit_review(
        article_id, user.id, request.score, request.recommendation, request.comments
    )
    return _review_response(review)


@router.get("/{article_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    article_id: str,
    reviews: ReviewService = Depends(get_review_service),
):
    """List the reviews of an article, oldest first."""
    reviews.review_status(article_id)  # 404 for unknown articles
    return [_review_response(r) for r in reviews.get_reviews(article_id)]


@router.get("/{article_id}/review-status", response_model=ReviewStatusResponse)
async def get_review_status(
    article_id: str,
    reviews: ReviewService = Depends(get_review_service),
):
    """Return the aggregated score and the status shown to readers."""
    article, summary, view = reviews.review_status(article_id)
    return ReviewStatusResponse(
        article_id=article.id,
        stored_status=article.status,
        display_status=view.status.value,
        progress=view.progress,
        average_score=summary.average_score,
        review_count=summary.review_count,
        passes_threshold=summary.passes_threshold,
        required_reviews=REQUIRED_REVIEWS,
    )
