"""Exception hierarchy for dpub.

Every error carries a stable machine-readable ``code`` and the HTTP status
it maps to at the API boundary. Services raise these; the web layer renders
them as ``{"error": {"code", "message", "details"}}``.
"""

from __future__ import annotations

from typing import Any, Optional


class DPubError(Exception):
    """Base exception for all dpub errors.

    Attributes:
        message: Human-readable error description
        code: Stable error code (e.g. ``ALREADY_FLAGGED``)
        status_code: HTTP status used at the API boundary
        details: Additional structured context for the caller
    """

    status_code: int = 500
    default_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the error envelope payload."""
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


# =============================================================================
# Client errors
# =============================================================================


class ValidationError(DPubError):
    """Client-supplied input is malformed. Recoverable by fixing the input."""

    status_code = 400
    default_code = "INVALID_REQUEST"


class StateConflictError(DPubError):
    """The request is valid but the target's state forbids it."""

    status_code = 400
    default_code = "STATE_CONFLICT"


class AuthenticationError(DPubError):
    """Missing or invalid credentials."""

    status_code = 401
    default_code = "UNAUTHORIZED"


class InvalidTokenError(AuthenticationError):
    """The bearer token was rejected by the identity provider."""

    default_code = "INVALID_TOKEN"


class PermissionDeniedError(DPubError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(DPubError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(DPubError):
    """Another operation on the same resource is still in flight."""

    status_code = 409
    default_code = "CONFLICT"


class RateLimitExceededError(DPubError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


# =============================================================================
# Infrastructure errors
# =============================================================================


class InternalServerError(DPubError):
    """Generic failure surfaced to callers without internal detail."""

    status_code = 500
    default_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)


class StoreError(DPubError):
    """The document store could not read or write a collection."""

    status_code = 500
    default_code = "STORE_ERROR"


class DuplicateDocumentError(StoreError):
    """An insert-if-absent found an existing document."""

    default_code = "DUPLICATE_DOCUMENT"

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document '{doc_id}' already exists in '{collection}'")
        self.collection = collection
        self.doc_id = doc_id


class DocumentNotFoundError(StoreError):
    default_code = "DOCUMENT_NOT_FOUND"

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document '{doc_id}' not found in '{collection}'")
        self.collection = collection
        self.doc_id = doc_id
