"""Article submission and lookup."""

from __future__ import annotations

from typing import Optional

from dpub.errors import NotFoundError, ValidationError
from dpub.models.article import Article, ArticleStatus, ModerationStatus, validate_article_id
from dpub.store import ARTICLES, DocumentStore


class ArticleService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def submit(self, author_id: str, title: str, abstract: str = "") -> Article:
        """Create a new article awaiting review."""
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required", code="INVALID_TITLE")
        article = Article(
            id=self._store.new_id(),
            title=title.strip(),
            abstract=abstract or "",
            author_id=author_id,
            status=ArticleStatus.pending.value,
            moderation_status=ModerationStatus.active.value,
        )
        self._store.create(ARTICLES, article.to_record(), doc_id=article.id)
        return article

    def get(self, article_id: str) -> Article:
        validate_article_id(article_id)
        record = self._store.get(ARTICLES, article_id)
        if record is None:
            raise NotFoundError("Article not found", code="ARTICLE_NOT_FOUND")
        return Article.from_record(record)

    def list(self, status: Optional[str] = None, limit: Optional[int] = None) -> list[Article]:
        where = {"status": status} if status else None
        return [
            Article.from_record(d)
            for d in self._store.query(ARTICLES, where=where, order_by="createdAt", descending=True, limit=limit)
        ]
