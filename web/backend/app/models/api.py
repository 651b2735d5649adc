"""Pydantic models for API request/response serialization.

These models mirror the dpub dataclasses. Field names are snake_case in
Python and camelCase on the wire, matching the stored record shapes.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorBody(CamelModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(CamelModel):
    error: ErrorBody


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------


class SubmitArticleRequest(CamelModel):
    title: str
    abstract: str = ""


class ArticleResponse(CamelModel):
    """Mirrors dpub.models.article.Article."""

    id: str
    title: str
    abstract: str = ""
    author_id: str = ""
    status: str
    moderation_status: str
    flag_count: int = 0
    review_count: int = 0
    last_flagged_at: str = ""
    moderation_notes: str = ""
    moderated_by: str = ""
    moderated_at: str = ""
    resolution_pending: bool = False
    created_at: str = ""


# ---------------------------------------------------------------------------
# Flags / moderation
# ---------------------------------------------------------------------------


class FlagArticleRequest(CamelModel):
    """Body of the flag endpoint.

    Fields are untyped on purpose: the service reports bad values with its
    own error codes (INVALID_CATEGORY / INVALID_REASON) instead of a generic
    request validation error.
    """

    category: Any = None
    reason: Any = None


class FlagArticleResponse(CamelModel):
    success: bool = True
    flag_count: int
    moderation_status: str


class FlagResponse(CamelModel):
    """Mirrors dpub.moderation.models.Flag."""

    id: str
    article_id: str
    reported_by: str
    category: str
    reason: str = ""
    status: str
    timestamp: str = ""
    resolved_by: str = ""
    resolved_at: str = ""


class FlaggedArticleResponse(CamelModel):
    article: ArticleResponse
    flags: list[FlagResponse] = Field(default_factory=list)
    flags_by_category: dict[str, int] = Field(default_factory=dict)


class ModerationDecisionRequest(CamelModel):
    action: str
    notes: Optional[str] = None


class ModerationOutcomeResponse(CamelModel):
    """Mirrors dpub.moderation.models.ModerationOutcome."""

    article_id: str
    action: str
    previous_status: str
    moderation_status: str
    flags_resolved: int
    log_id: str


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class SubmitReviewRequest(CamelModel):
    score: Any = None
    recommendation: Any = None
    comments: str = ""


class ReviewResponse(CamelModel):
    """Mirrors dpub.reviews.models.Review."""

    id: str
    article_id: str
    reviewer_id: str
    score: float
    recommendation: str
    comments: str = ""
    created_at: str = ""


class ReviewStatusResponse(CamelModel):
    article_id: str
    stored_status: str
    display_status: str
    progress: Optional[float] = None
    average_score: float
    review_count: int
    passes_threshold: bool
    required_reviews: int


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


class AdminLogResponse(CamelModel):
    """Mirrors dpub.security.audit_log.AdminLog."""

    id: str
    admin_id: str
    admin_email: str
    admin_role: str
    action_type: str
    target_type: str
    target_id: str = ""
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: str = ""
