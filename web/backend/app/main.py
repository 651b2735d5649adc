"""FastAPI application for the dpub publishing backend.

Provides REST API endpoints wrapping the dpub Python package for:
- Article submission and peer review status
- User flags against articles (rate limited)
- Admin moderation of flagged articles
- The admin activity (audit) log
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the dpub package is importable by adding the project root to sys.path.
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dpub import __version__
from dpub.config import configure_logging, get_settings
from dpub.errors import DPubError, InternalServerError
from web.backend.app.routers import articles, audit, flags, moderation, reviews

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="dpub API",
    description=(
        "REST API for the dpub publishing backend. "
        "Provides endpoints for article submission, peer review status, "
        "content flags and admin moderation."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Error envelope: {"error": {"code", "message", "details"?}}
# ---------------------------------------------------------------------------

_HTTP_CODES = {
    400: "INVALID_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _envelope(status_code: int, body: dict, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


@app.exception_handler(DPubError)
async def dpub_error_handler(request: Request, exc: DPubError):
    if exc.status_code >= 500:
        # infrastructure detail (collection names, parser messages) stays in the log
        logger.error("%s %s failed: %s: %s", request.method, request.url.path, exc.code, exc.message)
        return _envelope(500, InternalServerError().to_dict())
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(exc.status_code, exc.to_dict(), headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else code
    return _envelope(exc.status_code, {"code": code, "message": message}, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _envelope(
        400,
        {"code": "INVALID_REQUEST", "message": "Invalid request", "details": {"errors": errors}},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, InternalServerError().to_dict())


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(articles.router)
app.include_router(flags.router)
app.include_router(reviews.router)
app.include_router(moderation.router)
app.include_router(audit.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "dpub API",
        "version": __version__,
        "description": "Peer review and content moderation REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
