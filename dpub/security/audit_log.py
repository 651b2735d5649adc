"""Administrative audit trail.

Append-only ``AdminLog`` entries stored in the ``adminActivityLogs``
collection, with filtering and JSON/CSV export.
"""

from __future__ import annotations

import csv
import io
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from dpub.auth.models import User
from dpub.errors import DuplicateDocumentError
from dpub.store import ADMIN_LOGS, DocumentStore
from dpub.utils.timestamps import utc_now

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)


class AdminActionType(str, Enum):
    user_create = "user_create"
    user_update = "user_update"
    user_delete = "user_delete"
    article_approve = "article_approve"
    article_reject = "article_reject"
    article_delete = "article_delete"
    role_change = "role_change"
    login = "login"
    logout = "logout"
    setting_change = "setting_change"


@dataclass
class AdminLog:
    """A single audit log entry."""

    id: str
    admin_id: str
    admin_email: str
    admin_role: str
    action_type: str
    target_type: str
    target_id: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "adminId": self.admin_id,
            "adminEmail": self.admin_email,
            "adminRole": self.admin_role,
            "actionType": self.action_type,
            "targetType": self.target_type,
            "targetId": self.target_id,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, d: dict[str, Any]) -> "AdminLog":
        return cls(
            id=d["id"],
            admin_id=d.get("adminId", ""),
            admin_email=d.get("adminEmail", ""),
            admin_role=d.get("adminRole", ""),
            action_type=d.get("actionType", ""),
            target_type=d.get("targetType", ""),
            target_id=d.get("targetId") or "",
            details=d.get("details") or {},
            timestamp=d.get("timestamp", ""),
        )


def sanitize_details(details: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested values to JSON strings and strip script blocks."""
    sanitized: dict[str, Any] = {}
    for key, value in details.items():
        if callable(value):
            continue
        if isinstance(value, (dict, list, tuple)):
            sanitized[key] = json.dumps(value, default=str)
        elif value is None or isinstance(value, (bool, int, float)):
            sanitized[key] = value
        else:
            sanitized[key] = _SCRIPT_RE.sub("", str(value))
    return sanitized


class AdminLogger:
    """Writes and queries AdminLog entries."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log_action(
        self,
        admin: User,
        action_type: AdminActionType | str,
        target_type: str,
        target_id: str = "",
        details: Optional[dict[str, Any]] = None,
        log_id: Optional[str] = None,
    ) -> AdminLog:
        """Record an admin action and return the created entry.

        With *log_id*, the write is insert-if-absent: repeating it returns
        the entry already stored instead of appending a second one.
        """
        action = action_type.value if isinstance(action_type, AdminActionType) else action_type
        entry = AdminLog(
            id=log_id or self._store.new_id(),
            admin_id=admin.id,
            admin_email=admin.email,
            admin_role=admin.role.value,
            action_type=action,
            target_type=target_type,
            target_id=target_id,
            details=sanitize_details(details or {}),
            timestamp=utc_now(),
        )
        try:
            self._store.create(ADMIN_LOGS, entry.to_record(), doc_id=entry.id)
        except DuplicateDocumentError:
            existing = self._store.get(ADMIN_LOGS, entry.id)
            return AdminLog.from_record(existing)
        return entry

    def get_events(
        self,
        *,
        admin_id: Optional[str] = None,
        action_type: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        limit: int = 200,
    ) -> list[AdminLog]:
        """Return filtered audit events, newest first."""
        where: dict[str, Any] = {}
        if admin_id:
            where["adminId"] = admin_id
        if action_type:
            where["actionType"] = action_type
        if target_type:
            where["targetType"] = target_type
        if target_id:
            where["targetId"] = target_id

        entries = [
            AdminLog.from_record(d)
            for d in self._store.query(ADMIN_LOGS, where=where, order_by="timestamp", descending=True)
        ]
        if start:
            entries = [e for e in entries if e.timestamp >= start]
        if end:
            entries = [e for e in entries if e.timestamp <= end]
        return entries[:limit]

    def get_events_for_target(self, target_type: str, target_id: str) -> list[AdminLog]:
        return self.get_events(target_type=target_type, target_id=target_id, limit=10000)

    def export_events(self, fmt: str = "json", limit: int = 10000, **filters: Any) -> str:
        """Export audit events as ``json`` or ``csv``."""
        entries = self.get_events(limit=limit, **filters)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(
                ["id", "timestamp", "adminId", "adminEmail", "adminRole", "actionType", "targetType", "targetId"]
            )
            for e in entries:
                writer.writerow(
                    [e.id, e.timestamp, e.admin_id, e.admin_email, e.admin_role, e.action_type, e.target_type, e.target_id]
                )
            return buf.getvalue()

        return json.dumps([e.to_record() for e in entries], indent=2)

