"""Repository for AuditLog database operations."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import AuditLog
from repositories.base_repository import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for audit log operations. Append-only."""

    model = AuditLog

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        user_id: Optional[int] = None,
        username: Optional[str] = None,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[AuditLog], int]:
        """
        Search audit logs with pagination, newest first.

        to_date is an exclusive upper bound; callers widen it to cover a whole day.
        """
        conditions = []
        if user_id is not None:
            conditions.append(AuditLog.user_id == user_id)
        if username:
            conditions.append(AuditLog.username.ilike(f"%{username}%"))
        if action:
            conditions.append(AuditLog.action == action)
        if entity_type:
            conditions.append(AuditLog.entity_type == entity_type)
        if entity_id:
            conditions.append(AuditLog.entity_id == entity_id)
        if from_date is not None:
            conditions.append(AuditLog.created_at >= from_date)
        if to_date is not None:
            conditions.append(AuditLog.created_at < to_date)

        stmt = select(AuditLog).where(*conditions)
        count_stmt = select(func.count(AuditLog.id)).where(*conditions)

        return await cls._paginate(
            db,
            stmt,
            count_stmt,
            page=page,
            per_page=per_page,
            order_by=(AuditLog.created_at.desc(), AuditLog.id.desc()),
        )
