"""
IMEI workflow schemas.

Covers device references from the external directory, live device data,
access decisions and verification requests/results.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from core.schema_base import CamelSchemaModel
from db.enums import CallerRole
from schemas.common import PageParams


class Caller(CamelSchemaModel):
    """
    Authenticated caller, resolved once from the user's stored roles.

    technician_id is set when the user has a technician record, whatever
    the role.
    """

    user_id: int
    role: CallerRole
    username: Optional[str] = None
    reseller_id: Optional[int] = None
    technician_id: Optional[int] = None


class DeviceRef(CamelSchemaModel):
    """A device resolved by the external directory."""

    device_id: Optional[int] = Field(None, description="Internal device id")
    imei: Optional[str] = Field(None, max_length=20)
    time_zone: Optional[str] = None
    sim: Optional[str] = None
    country_code: Optional[str] = None
    type_id: Optional[int] = None
    server: Optional[str] = None


class GpsData(CamelSchemaModel):
    """GPS snapshot reported by a device."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    satellites: Optional[int] = None
    signal_strength: Optional[int] = None
    ignition_on: Optional[bool] = None
    battery_voltage: Optional[float] = None
    external_voltage: Optional[float] = None
    gps_time: Optional[datetime] = None
    server_time: Optional[datetime] = None


class VehicleInfo(CamelSchemaModel):
    vehicle_id: Optional[int] = None
    plate_number: Optional[str] = None
    vehicle_name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    owner_name: Optional[str] = None


class DeviceData(CamelSchemaModel):
    """Live data of a device as returned by the directory."""

    device_id: int
    imei: str
    serial_number: Optional[str] = None
    device_model: Optional[str] = None
    firmware_version: Optional[str] = None
    is_online: bool = False
    last_gps_data: Optional[GpsData] = None
    vehicle_info: Optional[VehicleInfo] = None


class VerificationPayload(CamelSchemaModel):
    """Optional data attached to a newly created verification log row."""

    verification_status: str = Field("Verified", max_length=50)
    notes: Optional[str] = Field(None, max_length=500)
    gps_data: Optional[GpsData] = None


class VerificationRequest(VerificationPayload):
    """Request to verify a device identified by IMEI or internal id."""

    imei: str = Field(..., min_length=1, max_length=20)

    @field_validator("imei")
    @classmethod
    def strip_imei(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("IMEI is required")
        return v


class AccessResult(CamelSchemaModel):
    """Outcome of an access check. Denial is a value, not an error."""

    has_access: bool
    restriction_reason: Optional[str] = None
    device_id: Optional[int] = None


class DeviceDataResult(CamelSchemaModel):
    success: bool
    message: Optional[str] = None
    data: Optional[DeviceData] = None


class VerificationResult(CamelSchemaModel):
    """Outcome of the verification workflow."""

    success: bool
    verification_id: Optional[int] = None
    created: bool = False
    message: Optional[str] = None


class VerificationHistoryFilter(PageParams):
    """History filter; both dates default to the current UTC day."""

    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


class VerificationHistoryItem(CamelSchemaModel):
    id: int = Field(..., serialization_alias="verificationId")
    device_id: int
    imei: Optional[str] = None
    verification_status: str
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    gps_time: Optional[datetime] = None
    verified_at: datetime
