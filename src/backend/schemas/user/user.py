"""User account schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, computed_field, field_validator

from core.schema_base import CamelSchemaModel
from db.enums import UserStatus
from schemas.common import PageParams

MIN_PASSWORD_LENGTH = 8


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email address")
    return v


class UserCreate(CamelSchemaModel):
    """
    Schema for creating a user.

    Roles are given either as ids (role_ids) or as names (roles); ids win
    when both are present.
    """

    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    mobile: Optional[str] = Field(None, max_length=30)
    phone: Optional[str] = Field(None, max_length=30)
    alias_name: Optional[str] = Field(None, max_length=100)
    full_name: Optional[str] = Field(None, max_length=200)
    reseller_id: Optional[int] = None
    status: UserStatus = UserStatus.ACTIVE
    lockout_until: Optional[datetime] = None
    role_ids: Optional[List[int]] = None
    roles: Optional[List[str]] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class UserUpdate(CamelSchemaModel):
    """Partial update. A non-empty role list replaces the user's roles."""

    email: Optional[str] = Field(None, max_length=255)
    mobile: Optional[str] = Field(None, max_length=30)
    phone: Optional[str] = Field(None, max_length=30)
    alias_name: Optional[str] = Field(None, max_length=100)
    full_name: Optional[str] = Field(None, max_length=200)
    reseller_id: Optional[int] = None
    status: Optional[UserStatus] = None
    lockout_until: Optional[datetime] = None
    role_ids: Optional[List[int]] = None
    roles: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v)


class UserRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="userId")
    username: str
    email: str
    mobile: Optional[str] = None
    phone: Optional[str] = None
    alias_name: Optional[str] = None
    full_name: Optional[str] = None
    reseller_id: Optional[int] = None
    reseller_name: Optional[str] = None
    status: int
    last_login_at: Optional[datetime] = None
    lockout_until: Optional[datetime] = None
    roles: List[str] = Field(default_factory=list)
    technician_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def status_text(self) -> str:
        try:
            return UserStatus(self.status).name
        except ValueError:
            return "UNKNOWN"


class UserFilter(PageParams):
    search: Optional[str] = None
    status: Optional[UserStatus] = None
    reseller_id: Optional[int] = None
    exclude_super_admin: bool = False


class PasswordChange(CamelSchemaModel):
    current_password: str
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class PasswordReset(CamelSchemaModel):
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
