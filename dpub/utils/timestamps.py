"""Timestamp helpers. Stored timestamps are ISO 8601 strings in UTC."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def epoch_to_iso(seconds: float) -> str:
    """Convert a Unix timestamp in seconds to an ISO 8601 string."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
