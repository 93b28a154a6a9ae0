from __future__ import annotations

from pydantic import BaseModel

from venuebook.schemas.common import UtcDatetime


class AuditLogOut(BaseModel):
    id: str
    created_at: UtcDatetime
    actor_user_id: str | None
    actor_role: str
    action_type: str
    target_type: str
    target_id: str
    summary: str
    diff_json: dict | None

    class Config:
        from_attributes = True
