"""Shared record types."""

from dpub.models.article import Article, ArticleStatus, ModerationStatus, validate_article_id

__all__ = ["Article", "ArticleStatus", "ModerationStatus", "validate_article_id"]
