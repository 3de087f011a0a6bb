"""Verification log schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from core.schema_base import CamelSchemaModel
from schemas.common import PageParams


class VerificationLogRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="verificationId")
    technician_id: int
    device_id: int
    imei: Optional[str] = None
    verification_status: str
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    gps_time: Optional[datetime] = None
    verified_at: datetime


class VerificationLogFilter(PageParams):
    technician_id: Optional[int] = None
    device_id: Optional[int] = None
    reseller_id: Optional[int] = None
    imei: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


class VerificationStatistics(CamelSchemaModel):
    total_verifications: int = 0
    unique_devices: int = 0
    verifications_today: int = 0
    verifications_this_week: int = 0
    verifications_this_month: int = 0
    last_verification_at: Optional[datetime] = None
