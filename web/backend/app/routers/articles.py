"""Articles router -- submission and lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dpub.articles.service import ArticleService
from dpub.auth.models import User
from dpub.models.article import Article
from web.backend.app.dependencies import get_article_service
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import ArticleResponse, SubmitArticleRequest

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


def article_response(a: Article) -> ArticleResponse:
    """Convert an Article to its public representation."""
    return ArticleResponse(
        id=a.id,
        title=a.title,
        abstract=a.abstract,
        author_id=a.author_id,
        status=a.status,
        moderation_status=a.moderation_status,
        flag_count=a.flag_count,
        review_count=a.review_count,
        last_flagged_at=a.last_flagged_at,
        moderation_notes=a.moderation_notes,
        moderated_by=a.moderated_by,
        moderated_at=a.moderated_at,
        resolution_pending=bool(a.pending_resolution),
        created_at=a.created_at,
    )


@router.post("", response_model=ArticleResponse, status_code=201)
async def submit_article(
    request: SubmitArticleRequest,
    user: User = Depends(get_current_user),
    articles: ArticleService = Depends(get_article_service),
):
    """Submit a new article for peer review."""
    article = articles.submit(user.id, request.title, request.abstract)
    return article_response(article)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    articles: ArticleService = Depends(get_article_service),
):
    """Return a single article."""
    return article_response(articles.get(article_id))
