"""Technician schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import CamelSchemaModel
from db.enums import TechnicianStatus
from schemas.common import PageParams


class TechnicianBase(CamelSchemaModel):
    reseller_id: Optional[int] = None
    employee_code: Optional[str] = Field(None, max_length=50)
    skillset: Optional[str] = Field(None, max_length=500)
    certification: Optional[str] = Field(None, max_length=500)
    work_region: Optional[str] = Field(None, max_length=100)
    daily_limit: int = Field(0, ge=0, description="Verifications per UTC day; 0 means unlimited")


class TechnicianCreate(TechnicianBase):
    """Create a technician profile for an existing user."""

    user_id: int


class TechnicianUpdate(CamelSchemaModel):
    reseller_id: Optional[int] = None
    employee_code: Optional[str] = Field(None, max_length=50)
    skillset: Optional[str] = Field(None, max_length=500)
    certification: Optional[str] = Field(None, max_length=500)
    work_region: Optional[str] = Field(None, max_length=100)
    daily_limit: Optional[int] = Field(None, ge=0)
    status: Optional[TechnicianStatus] = None


class TechnicianRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="technicianId")
    user_id: int
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    reseller_id: Optional[int] = None
    employee_code: Optional[str] = None
    skillset: Optional[str] = None
    certification: Optional[str] = None
    work_region: Optional[str] = None
    daily_limit: int
    status: int
    active_restriction_count: int = 0
    created_at: Optional[datetime] = None


class TechnicianFilter(PageParams):
    search: Optional[str] = None
    reseller_id: Optional[int] = None
    status: Optional[TechnicianStatus] = None
    work_region: Optional[str] = None
