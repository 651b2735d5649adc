"""Audit router -- read access to the admin activity log."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from dpub.auth.models import Role, User
from dpub.auth.permissions import require_role
from dpub.errors import ValidationError
from dpub.security.audit_log import AdminLog, AdminLogger
from web.backend.app.dependencies import get_admin_logger
from web.backend.app.middleware.auth import get_admin_user
from web.backend.app.models.api import AdminLogResponse

router = APIRouter(prefix="/api/v1/admin/logs", tags=["audit"])


def _log_response(e: AdminLog) -> AdminLogResponse:
    return AdminLogResponse(
        id=e.id,
        admin_id=e.admin_id,
        admin_email=e.admin_email,
        admin_role=e.admin_role,
        action_type=e.action_type,
        target_type=e.target_type,
        target_id=e.target_id,
        details=e.details,
        timestamp=e.timestamp,
    )


@router.get("", response_model=list[AdminLogResponse])
async def list_logs(
    admin_id: Optional[str] = Query(None, alias="adminId"),
    action_type: Optional[str] = Query(None, alias="actionType"),
    target_type: Optional[str] = Query(None, alias="targetType"),
    target_id: Optional[str] = Query(None, alias="targetId"),
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: int = Query(200, ge=1, le=10000),
    admin: User = Depends(get_admin_user),
    audit: AdminLogger = Depends(get_admin_logger),
):
    """Query audit events, newest first."""
    events = audit.get_events(
        admin_id=admin_id,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        start=start,
        end=end,
        limit=limit,
    )
    return [_log_response(e) for e in events]


@router.get("/export", response_class=PlainTextResponse)
async def export_logs(
    fmt: str = Query("json", alias="format"),
    admin: User = Depends(get_admin_user),
    audit: AdminLogger = Depends(get_admin_logger),
):
    """Export the audit log. Full admins only."""
    require_role(admin, Role.admin)
    if fmt not in ("json", "csv"):
        raise ValidationError("Format must be 'json' or 'csv'", code="INVALID_FORMAT")
    media_type = "text/csv" if fmt == "csv" else "application/json"
    return PlainTextResponse(audit.export_events(fmt=fmt), media_type=media_type)
