"""Flag router -- users reporting articles for moderation."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from dpub.auth.models import User
from dpub.errors import DPubError, InternalServerError
from dpub.moderation.flags import MISSING, FlagService
from web.backend.app.dependencies import get_flag_service
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import ErrorResponse, FlagArticleRequest, FlagArticleResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/articles", tags=["flags"])


@router.post(
    "/{article_id}/flag",
    response_model=FlagArticleResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 401, 404, 429, 500)},
)
async def flag_article(
    article_id: str,
    request: Optional[FlagArticleRequest] = None,
    user: User = Depends(get_current_user),
    flags: FlagService = Depends(get_flag_service),
):
    """Flag an article as inappropriate.

    The second distinct flag moves the article into moderation review.
    """
    request = request or FlagArticleRequest()
    # an explicit ``"reason": null`` is invalid, an absent reason is not
    reason = request.reason if "reason" in request.model_fields_set else MISSING
    try:
        outcome = flags.flag_article(article_id, user.id, request.category, reason)
    except DPubError:
        raise
    except Exception as exc:
        logger.exception("Error flagging article %s", article_id)
        raise InternalServerError() from exc

    return FlagArticleResponse(
        success=True,
        flag_count=outcome.flag_count,
        moderation_status=outcome.moderation_status,
    )
