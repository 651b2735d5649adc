"""Shared service instances for the running process.

Every getter is a FastAPI dependency, so tests can swap any of them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from dpub.auth.store import IdentityStore
from dpub.auth.tokens import build_verifier
from dpub.config import get_settings
from dpub.articles.service import ArticleService
from dpub.moderation.flags import FlagService
from dpub.moderation.rate_limit import RateLimiter
from dpub.moderation.resolver import ModerationResolver
from dpub.reviews.service import ReviewService
from dpub.security.audit_log import AdminLogger
from dpub.store import DocumentStore

_documents: Optional[DocumentStore] = None
_limiter: Optional[RateLimiter] = None


def get_document_store() -> DocumentStore:
    """Return the singleton DocumentStore instance."""
    global _documents
    if _documents is None:
        _documents = DocumentStore(get_settings().documents_dir)
    return _documents


def get_rate_limiter() -> RateLimiter:
    """Return the process-local rate limiter."""
    global _limiter
    if _limiter is None:
        _limiter = RateLimiter()
    return _limiter


def get_identity_store(store: DocumentStore = Depends(get_document_store)) -> IdentityStore:
    return IdentityStore(store)


def get_token_verifier(identity: IdentityStore = Depends(get_identity_store)):
    return build_verifier(get_settings(), identity)


def get_article_service(store: DocumentStore = Depends(get_document_store)) -> ArticleService:
    return ArticleService(store)


def get_review_service(store: DocumentStore = Depends(get_document_store)) -> ReviewService:
    return ReviewService(store)


def get_flag_service(
    store: DocumentStore = Depends(get_document_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> FlagService:
    return FlagService(store, limiter)


def get_admin_logger(store: DocumentStore = Depends(get_document_store)) -> AdminLogger:
    return AdminLogger(store)


def get_moderation_resolver(
    store: DocumentStore = Depends(get_document_store),
    audit: AdminLogger = Depends(get_admin_logger),
) -> ModerationResolver:
    return ModerationResolver(store, audit)
