"""
Audit Service - append-only trail of sensitive actions.

Entries are added to the caller's session and committed with the
caller's transaction, so an audited change and its audit row succeed or
fail together.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Any, Dict, Optional, Union

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation
from db.enums import AuditAction
from db.models import AuditLog, as_naive_utc, utc_now
from repositories.audit_log_repository import AuditLogRepository
from repositories.user_repository import UserRepository
from schemas.audit import AuditFilter, AuditRead
from schemas.common import PagedResult

logger = logging.getLogger(__name__)


def _json_values(values: Optional[Any]) -> Optional[Dict[str, Any]]:
    if values is None:
        return None
    if hasattr(values, "model_dump"):
        values = values.model_dump(exclude_unset=True)
    return to_jsonable_python(values)


class AuditService:
    """Service for writing and querying audit logs."""

    @staticmethod
    @critical_database_operation("audit_log")
    async def log(
        db: AsyncSession,
        action: Union[AuditAction, str],
        entity_type: str,
        entity_id: Optional[Any] = None,
        user_id: Optional[int] = None,
        old_values: Optional[Any] = None,
        new_values: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """
        Add an audit log entry.

        Args:
            db: Database session
            action: Action performed (IMEI_ACCESS_DENIED, CREATE, ...)
            entity_type: Type of entity affected (Device, ImeiRestriction, ...)
            entity_id: Id of the affected entity
            user_id: User who performed the action; the username is looked up
            old_values: Values before the change (dict or schema)
            new_values: Values after the change (dict or schema)

        Returns:
            The flushed audit log entry
        """
        username = None
        if user_id is not None:
            user = await UserRepository.find_by_id(db, user_id)
            username = user.username if user else None

        entry = AuditLog(
            user_id=user_id,
            username=username,
            action=action.value if isinstance(action, AuditAction) else action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            old_values=_json_values(old_values),
            new_values=_json_values(new_values),
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=utc_now(),
        )
        db.add(entry)
        await db.flush()

        logger.info(
            f"Audit log created: {entry.action} on {entry.entity_type} "
            f"(entity_id={entry.entity_id}, user_id={entry.user_id})"
        )
        return entry

    @staticmethod
    @critical_database_operation("get_audit_logs")
    async def get_logs(db: AsyncSession, filters: AuditFilter) -> PagedResult[AuditRead]:
        """
        Get audit logs with filtering and pagination, newest first.

        to_date includes the whole calendar day it falls on.
        """
        to_date: Optional[datetime] = None
        if filters.to_date is not None:
            to_date = datetime.combine(as_naive_utc(filters.to_date).date(), time.min) + timedelta(days=1)

        items, total = await AuditLogRepository.search(
            db,
            user_id=filters.user_id,
            username=filters.username,
            action=filters.action,
            entity_type=filters.entity_type,
            entity_id=filters.entity_id,
            from_date=as_naive_utc(filters.from_date) if filters.from_date else None,
            to_date=to_date,
            page=filters.page,
            per_page=filters.page_size,
        )

        return PagedResult[AuditRead](
            items=[AuditRead.model_validate(item) for item in items],
            total_count=total,
            page=filters.page,
            page_size=filters.page_size,
        )
