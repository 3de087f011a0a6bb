"""Reseller (tenant) schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, computed_field, field_validator

from core.schema_base import CamelSchemaModel
from db.enums import ResellerStatus
from schemas.common import PageParams


def _status_text(status: int) -> str:
    try:
        return ResellerStatus(status).name
    except ValueError:
        return "UNKNOWN"


class ResellerBase(CamelSchemaModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    display_name: Optional[str] = Field(None, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=150)
    email: Optional[str] = Field(None, max_length=255)
    mobile: Optional[str] = Field(None, max_length=30)
    phone: Optional[str] = Field(None, max_length=30)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)

    @field_validator("company_name")
    @classmethod
    def strip_company_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Company name must not be blank")
        return v


class ResellerCreate(ResellerBase):
    """Schema for creating a reseller. New resellers start Active."""

    pass


class ResellerUpdate(CamelSchemaModel):
    """Partial update; status changes go through set_status."""

    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    display_name: Optional[str] = Field(None, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=150)
    email: Optional[str] = Field(None, max_length=255)
    mobile: Optional[str] = Field(None, max_length=30)
    phone: Optional[str] = Field(None, max_length=30)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)


class ResellerRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="resellerId")
    company_name: str
    display_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    status: int
    technician_count: int = 0
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def status_text(self) -> str:
        return _status_text(self.status)


class ResellerFilter(PageParams):
    search: Optional[str] = None
    status: Optional[ResellerStatus] = None
    country: Optional[str] = None


class ResellerStatistics(CamelSchemaModel):
    reseller_id: int
    total_technicians: int = 0
    active_technicians: int = 0
    total_verifications: int = 0
    verifications_this_month: int = 0


class ResellerStatusResult(CamelSchemaModel):
    """Outcome of a reseller status change and its cascade."""

    reseller_id: int
    company_name: str
    new_status: int
    users_updated: int = 0
    technicians_updated: int = 0
    tags_updated: int = 0

    @computed_field
    @property
    def status_text(self) -> str:
        return _status_text(self.new_status)

    @computed_field
    @property
    def message(self) -> str:
        return (
            f"Reseller '{self.company_name}' status changed to {self.status_text}. "
            f"Updated {self.users_updated} users, {self.technicians_updated} technicians "
            f"and {self.tags_updated} tags."
        )
