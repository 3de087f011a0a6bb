"""Tag schemas for grouping devices and other entities."""

from datetime import datetime
from typing import Optional

from pydantic import Field, computed_field, field_validator

from core.schema_base import CamelSchemaModel
from db.enums import TagEntityType, TagScope, TagStatus
from schemas.common import PageParams


class TagBase(CamelSchemaModel):
    tag_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    scope: TagScope = TagScope.GLOBAL
    reseller_id: Optional[int] = None
    user_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)

    @field_validator("tag_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Tag name must not be blank")
        return v


class TagCreate(TagBase):
    """Schema for creating a tag."""

    status: TagStatus = TagStatus.ACTIVE


class TagUpdate(CamelSchemaModel):
    """Partial update; only fields that were set are applied."""

    tag_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    scope: Optional[TagScope] = None
    reseller_id: Optional[int] = None
    user_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)
    status: Optional[TagStatus] = None


class TagRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="tagId")
    tag_name: str
    description: Optional[str] = None
    scope: int
    reseller_id: Optional[int] = None
    user_id: Optional[int] = None
    color: Optional[str] = None
    status: int
    item_count: int = 0
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def scope_text(self) -> str:
        try:
            return TagScope(self.scope).name.title()
        except ValueError:
            return "Unknown"

    @computed_field
    @property
    def status_text(self) -> str:
        return "Active" if self.status == TagStatus.ACTIVE else "Inactive"


class TagFilter(PageParams):
    search: Optional[str] = None
    scope: Optional[TagScope] = None
    reseller_id: Optional[int] = None
    status: Optional[TagStatus] = None


class TagItemCreate(CamelSchemaModel):
    entity_type: TagEntityType = TagEntityType.DEVICE
    entity_id: int
    entity_identifier: Optional[str] = Field(None, max_length=100)


class TagItemRead(CamelSchemaModel):
    id: int = Field(..., serialization_alias="tagItemId")
    tag_id: int
    entity_type: int
    entity_id: int
    entity_identifier: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def entity_type_name(self) -> str:
        try:
            return TagEntityType(self.entity_type).name.title()
        except ValueError:
            return "Unknown"
