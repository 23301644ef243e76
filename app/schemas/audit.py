"""Audit log schemas."""

from datetime import datetime

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    """Audit trail entry."""

    log_id: int
    user_id: int | None = None
    action: str
    object_type: str | None = None
    object_id: str | None = None
    details: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
