"""Audit trail service."""

import json
from typing import Any

from sqlalchemy import and_, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_logs import audit_logs
from app.schemas.audit import AuditLogResponse


class AuditService:
    """Writes and reads audit trail entries.

    Entries are added to the caller's transaction and are never committed
    here, so an audit row exists only if the audited change does.
    """

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def record(
        self,
        action: str,
        object_type: str,
        object_id: int | str,
        user_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Add an audit entry to the current transaction.

        Args:
            action: What happened, e.g. "appointment_created"
            object_type: Kind of object affected
            object_id: Identifier of the object affected
            user_id: Acting user, if known
            details: Extra context stored as JSON text
        """
        stmt = insert(audit_logs).values(
            user_id=user_id,
            action=action,
            object_type=object_type,
            object_id=str(object_id),
            details=json.dumps(details, default=str) if details else None,
        )
        await self.db.execute(stmt)

    async def list_for_object(self, object_type: str, object_id: int | str) -> list[AuditLogResponse]:
        """List audit entries for one object, oldest first."""
        stmt = (
            select(audit_logs)
            .where(
                and_(
                    audit_logs.c.object_type == object_type,
                    audit_logs.c.object_id == str(object_id),
                )
            )
            .order_by(audit_logs.c.log_id)
        )
        result = await self.db.execute(stmt)
        return [AuditLogResponse.model_validate(dict(row)) for row in result.mappings().all()]
