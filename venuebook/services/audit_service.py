from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from venuebook.models.audit_log import AuditLog
from venuebook.services.intervals import ensure_utc

logger = logging.getLogger(__name__)

REDACTED = "<redacted>"

# Never persisted in diffs: credentials and guest contact details
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "hashed_password",
        "access_token",
        "email",
        "phone",
        "special_requests",
    }
)


def redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: REDACTED if k in SENSITIVE_KEYS else redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


def write_audit_log(
    db: Session,
    *,
    actor=None,
    action_type: str,
    target_type: str = "",
    target_id: str = "",
    summary: str = "",
    diff_json: Mapping[str, Any] | None = None,
    request: Request | None = None,
) -> AuditLog:
    """Record a guest, host or admin action. `actor` is None for system actions."""
    client_ip = request.client.host if request is not None and request.client else ""
    user_agent = request.headers.get("user-agent", "")[:255] if request is not None else ""

    entry = AuditLog(
        actor_user_id=getattr(actor, "id", None),
        actor_role=getattr(actor, "role", "") or "",
        action_type=action_type,
        target_type=target_type,
        target_id=str(target_id),
        summary=summary[:255],
        diff_json=redact(diff_json) if diff_json is not None else None,
        ip_address=client_ip,
        user_agent=user_agent,
    )
    db.add(entry)
    db.commit()
    logger.info("audit %s %s/%s by %s", action_type, target_type, target_id, entry.actor_user_id or "system")
    return entry


def list_audit_logs(
    db: Session,
    *,
    since: datetime | None = None,
    until: datetime | None = None,
    action_type: str | None = None,
    target_type: str | None = None,
    target_id: str | None = None,
    limit: int = 200,
) -> list[AuditLog]:
    q = select(AuditLog).order_by(AuditLog.created_at.desc())
    if since is not None:
        q = q.where(AuditLog.created_at >= ensure_utc(since))
    if until is not None:
        q = q.where(AuditLog.created_at <= ensure_utc(until))
    if action_type:
        q = q.where(AuditLog.action_type == action_type)
    if target_type:
        q = q.where(AuditLog.target_type == target_type)
    if target_id:
        q = q.where(AuditLog.target_id == target_id)
    return list(db.execute(q.limit(limit)).scalars().all())
