"""
Audit schemas for tracking user actions.

old/new values are kept as JSON objects.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from core.schema_base import CamelSchemaModel
from schemas.common import PageParams


class AuditRead(CamelSchemaModel):
    """Schema for reading an audit log entry."""

    id: int = Field(..., serialization_alias="auditId")
    user_id: Optional[int] = None
    username: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditFilter(PageParams):
    """Schema for filtering audit logs."""

    user_id: Optional[int] = Field(None, description="Filter by user ID")
    username: Optional[str] = Field(None, description="Filter by username substring")
    action: Optional[str] = Field(None, description="Filter by action type")
    entity_type: Optional[str] = Field(None, description="Filter by entity type")
    entity_id: Optional[str] = Field(None, description="Filter by entity ID")
    from_date: Optional[datetime] = Field(None, description="Filter by start date")
    to_date: Optional[datetime] = Field(None, description="Filter by end date (whole day included)")
