"""Role and permission schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from core.schema_base import CamelSchemaModel


class PermissionRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="permissionId")
    permission_name: str
    description: Optional[str] = None
    module: Optional[str] = None


class RoleCreate(CamelSchemaModel):
    role_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    permission_ids: List[int] = Field(default_factory=list)

    @field_validator("role_name")
    @classmethod
    def strip_role_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Role name must not be blank")
        return v


class RoleUpdate(CamelSchemaModel):
    """Partial update. permission_ids, when set, replaces the role's permissions."""

    role_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    permission_ids: Optional[List[int]] = None


class RoleRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="roleId")
    role_name: str
    description: Optional[str] = None
    is_system_role: bool = False
    reseller_id: Optional[int] = None
    permissions: List[PermissionRead] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
