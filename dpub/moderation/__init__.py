"""Content moderation: user flags, rate limiting and admin resolution."""

from dpub.moderation.flags import FlagService
from dpub.moderation.models import (
    Flag,
    FlagCategory,
    FlaggedArticle,
    FlagOutcome,
    FlagStatus,
    ModerationAction,
    ModerationOutcome,
)
from dpub.moderation.rate_limit import InMemoryRateLimitStore, RateLimiter, RateLimitResult
from dpub.moderation.resolver import ModerationResolver

__all__ = [
    "FlagService",
    "Flag",
    "FlagCategory",
    "FlaggedArticle",
    "FlagOutcome",
    "FlagStatus",
    "ModerationAction",
    "ModerationOutcome",
    "InMemoryRateLimitStore",
    "RateLimiter",
    "RateLimitResult",
    "ModerationResolver",
]
