"""Moderation router -- admin queue and decisions on flagged articles."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dpub.auth.models import User
from dpub.config import get_settings
from dpub.errors import DPubError, InternalServerError
from dpub.moderation.models import Flag, FlaggedArticle, ModerationOutcome
from dpub.moderation.resolver import ModerationResolver
from web.backend.app.dependencies import get_moderation_resolver
from web.backend.app.middleware.auth import get_admin_user
from web.backend.app.models.api import (
    ArticleResponse,
    FlaggedArticleResponse,
    FlagResponse,
    ModerationDecisionRequest,
    ModerationOutcomeResponse,
)
from web.backend.app.routers.articles import article_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin/moderation", tags=["moderation"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _flag_response(f: Flag) -> FlagResponse:
    return FlagResponse(
        id=f.id,
        article_id=f.article_id,
        reported_by=f.reported_by,
        category=f.category,
        reason=f.reason,
        status=f.status,
        timestamp=f.timestamp,
        resolved_by=f.resolved_by,
        resolved_at=f.resolved_at,
    )


def _flagged_response(item: FlaggedArticle) -> FlaggedArticleResponse:
    return FlaggedArticleResponse(
        article=article_response(item.article),
        flags=[_flag_response(f) for f in item.flags],
        flags_by_category={cat: len(fs) for cat, fs in item.flags_by_category.items()},
    )


def _outcome_response(o: ModerationOutcome) -> ModerationOutcomeResponse:
    return ModerationOutcomeResponse(
        article_id=o.article_id,
        action=o.action,
        previous_status=o.previous_status,
        moderation_status=o.moderation_status,
        flags_resolved=o.flags_resolved,
        log_id=o.log_id,
    )


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@router.get("/queue", response_model=list[FlaggedArticleResponse])
async def moderation_queue(
    status: str = Query("under_review"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: User = Depends(get_admin_user),
    resolver: ModerationResolver = Depends(get_moderation_resolver),
):
    """List flagged articles with their flags.

    ``status`` is ``all``, ``active``, ``under_review`` or ``removed``.
    """
    queue = resolver.moderation_queue(status, limit or get_settings().moderation_queue_limit)
    return [_flagged_response(item) for item in queue]


@router.get("/articles/{article_id}", response_model=FlaggedArticleResponse)
async def get_flagged_article(
    article_id: str,
    admin: User = Depends(get_admin_user),
    resolver: ModerationResolver = Depends(get_moderation_resolver),
):
    return _flagged_response(resolver.get_flagged_article(article_id))


@router.get("/pending", response_model=list[ArticleResponse])
async def pending_resolutions(
    admin: User = Depends(get_admin_user),
    resolver: ModerationResolver = Depends(get_moderation_resolver),
):
    """Articles whose last moderation decision was interrupted."""
    return [article_response(a) for a in resolver.pending_resolutions()]


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@router.post("/articles/{article_id}/resolve", response_model=ModerationOutcomeResponse)
async def resolve_article(
    article_id: str,
    request: ModerationDecisionRequest,
    admin: User = Depends(get_admin_user),
    resolver: ModerationResolver = Depends(get_moderation_resolver),
):
    """Approve (keep) or reject (remove) a flagged article."""
    try:
        outcome = resolver.resolve(article_id, request.action, request.notes, admin)
    except DPubError:
        raise
    except Exception as exc:
        logger.exception("Error resolving article %s", article_id)
        raise InternalServerError() from exc
    return _outcome_response(outcome)


@router.post("/articles/{article_id}/resume", response_model=ModerationOutcomeResponse)
async def resume_resolution(
    article_id: str,
    admin: User = Depends(get_admin_user),
    resolver: ModerationResolver = Depends(get_moderation_resolver),
):
    """Finish an interrupted decision with the action originally chosen."""
    try:
        outcome = resolver.resume(article_id)
    except DPubError:
        raise
    except Exception as exc:
        logger.exception("Error resuming resolution for article %s", article_id)
        raise InternalServerError() from exc
    return _outcome_response(outcome)
