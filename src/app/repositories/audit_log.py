"""Audit log repository with filtered listing."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.models.enums import AuditAction
from app.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, AuditLog)

    async def list_with_filters(
        self,
        user_id: UUID | None = None,
        action: AuditAction | None = None,
        entity_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[AuditLog], int]:
        """List audit entries newest first with optional filters."""
        query = select(AuditLog).order_by(AuditLog.created_at.desc())
        if user_id is not None:
            query = query.where(AuditLog.user_id == user_id)
        if action is not None:
            query = query.where(AuditLog.action == action)
        if entity_type is not None:
            query = query.where(AuditLog.entity_type == entity_type)
        if start is not None:
            query = query.where(AuditLog.created_at >= start)
        if end is not None:
            query = query.where(AuditLog.created_at <= end)
        return await self.paginate(query, skip, limit)
