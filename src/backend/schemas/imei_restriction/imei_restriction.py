"""IMEI restriction schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import CamelSchemaModel
from db.enums import AccessType, RestrictionStatus
from schemas.common import PageParams


class ImeiRestrictionBase(CamelSchemaModel):
    device_id: Optional[int] = Field(None, description="Target device (exclusive with tag_id)")
    tag_id: Optional[int] = Field(None, description="Target tag of devices (exclusive with device_id)")
    access_type: AccessType
    priority: int = Field(0, ge=0, le=32767, description="Higher priority wins")
    reason: Optional[str] = Field(None, max_length=255)
    is_permanent: bool = True
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1024)


class ImeiRestrictionCreate(ImeiRestrictionBase):
    """Schema for creating a restriction rule."""

    technician_id: int


class ImeiRestrictionUpdate(CamelSchemaModel):
    """Partial update; only fields that were set are applied."""

    device_id: Optional[int] = None
    tag_id: Optional[int] = None
    access_type: Optional[AccessType] = None
    priority: Optional[int] = Field(None, ge=0, le=32767)
    reason: Optional[str] = Field(None, max_length=255)
    is_permanent: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1024)
    status: Optional[RestrictionStatus] = None


class ImeiRestrictionRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="restrictionId")
    technician_id: int
    technician_name: Optional[str] = None
    device_id: Optional[int] = None
    tag_id: Optional[int] = None
    tag_name: Optional[str] = None
    access_type: int
    priority: int
    reason: Optional[str] = None
    is_permanent: bool
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    notes: Optional[str] = None
    status: int
    created_at: Optional[datetime] = None


class ImeiRestrictionFilter(PageParams):
    technician_id: int
