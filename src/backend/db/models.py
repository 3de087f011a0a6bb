"""
Database models for the Telematics Data Console.

Relations between tenants, users, technicians, tags and restrictions are
plain foreign-key columns. Services follow them with explicit id lookups
through the repositories instead of navigating object graphs; the only
ORM relationship kept is Tag -> TagItem, which is owned one-way.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlmodel import Field, Relationship, SQLModel

from db.enums import (
    AccessType,
    RestrictionStatus,
    ResellerStatus,
    TagScope,
    TagStatus,
    TechnicianStatus,
    UserStatus,
)


def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-naive) for database storage.

    All timestamps are stored as naive UTC; conversion to the user's
    timezone happens in the frontend.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC. Naive values are assumed to be UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TableModel(SQLModel):
    """Base table model with common functionality."""

    pass


# ============================================================================
# TENANTS, USERS AND ROLE-BASED ACCESS CONTROL
# ============================================================================


class Reseller(TableModel, table=True):
    """Reseller (tenant) owning users, technicians and tags."""

    __tablename__ = "resellers"

    id: Optional[int] = Field(default=None, primary_key=True)
    company_name: str = Field(
        sa_column=Column(String(200), nullable=False),
        description="Legal company name",
    )
    display_name: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    contact_person: Optional[str] = Field(default=None, sa_column=Column(String(150), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    mobile: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    address_line1: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    address_line2: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    city: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    state: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    country: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    postal_code: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    status: int = Field(
        default=ResellerStatus.ACTIVE,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        Index("ix_reseller_status", "status"),
    )


class User(TableModel, table=True):
    """Console user account. Technicians, admins and supervisors are all users."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(
        sa_column=Column(String(100), nullable=False, unique=True),
        description="Login name",
    )
    email: str = Field(sa_column=Column(String(255), nullable=False))
    mobile: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(30), nullable=True))
    alias_name: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    full_name: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    password_hash: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    reseller_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("resellers.id", ondelete="SET NULL"), nullable=True),
        description="Tenant the user belongs to; NULL for platform users",
    )
    status: int = Field(
        default=UserStatus.ACTIVE,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    failed_login_attempts: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    lockout_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        Index("ix_user_reseller_id", "reseller_id"),
        Index("ix_user_status", "status"),
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


class Role(TableModel, table=True):
    """Role grouping permissions. System roles have no reseller."""

    __tablename__ = "roles"

    id: Optional[int] = Field(default=None, primary_key=True)
    role_name: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    description: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    is_system_role: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=text("false")),
    )
    reseller_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("resellers.id", ondelete="CASCADE"), nullable=True),
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )


class Permission(TableModel, table=True):
    """Named permission, e.g. imei.verify."""

    __tablename__ = "permissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    permission_name: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    description: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    module: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )


class RolePermission(TableModel, table=True):
    __tablename__ = "role_permissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    role_id: int = Field(sa_column=Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False))
    permission_id: int = Field(
        sa_column=Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False)
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )


class UserRole(TableModel, table=True):
    __tablename__ = "user_roles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False))
    role_id: int = Field(sa_column=Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False))
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role"),
        Index("ix_user_role_user_id", "user_id"),
    )


# ============================================================================
# TECHNICIANS, TAGS AND IMEI RESTRICTIONS
# ============================================================================


class Technician(TableModel, table=True):
    """Field technician profile attached to a user account. Never hard-deleted."""

    __tablename__ = "technicians"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, unique=True),
    )
    reseller_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("resellers.id", ondelete="SET NULL"), nullable=True),
    )
    employee_code: Optional[str] = Field(default=None, sa_column=Column(String(50), nullable=True))
    skillset: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    certification: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    work_region: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    daily_limit: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
        description="Maximum verifications per UTC day; 0 means unlimited",
    )
    status: int = Field(
        default=TechnicianStatus.ACTIVE,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        Index("ix_technician_reseller_id", "reseller_id"),
        Index("ix_technician_status", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == TechnicianStatus.ACTIVE


class Tag(TableModel, table=True):
    """Named, scoped set of entities (usually devices)."""

    __tablename__ = "tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    tag_name: str = Field(sa_column=Column(String(100), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    scope: int = Field(
        default=TagScope.RESELLER,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    reseller_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("resellers.id", ondelete="CASCADE"), nullable=True),
    )
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
    )
    color: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    status: int = Field(
        default=TagStatus.ACTIVE,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    items: List["TagItem"] = Relationship(
        back_populates="tag",
        sa_relationship_kwargs={"lazy": "selectin", "cascade": "all, delete-orphan"},
    )

    __table_args__ = (
        Index("ix_tag_scope", "scope"),
        Index("ix_tag_reseller_id", "reseller_id"),
    )


class TagItem(TableModel, table=True):
    """Membership of one entity (EntityType + EntityId) in a tag."""

    __tablename__ = "tag_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    tag_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False),
    )
    entity_type: int = Field(sa_column=Column(SmallInteger, nullable=False))
    entity_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    entity_identifier: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Human-readable identifier, e.g. the IMEI of a device",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    tag: Optional[Tag] = Relationship(back_populates="items")

    __table_args__ = (
        UniqueConstraint("tag_id", "entity_type", "entity_id", name="uq_tag_item_entity"),
        Index("ix_tag_item_entity", "entity_type", "entity_id"),
    )


class ImeiRestriction(TableModel, table=True):
    """Allow/deny rule scoping one technician's access to a device or a tag of devices."""

    __tablename__ = "imei_restrictions"

    id: Optional[int] = Field(default=None, primary_key=True)
    technician_id: int = Field(
        sa_column=Column(Integer, ForeignKey("technicians.id", ondelete="CASCADE"), nullable=False),
    )
    device_id: Optional[int] = Field(default=None, sa_column=Column(BigInteger, nullable=True))
    tag_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=True),
    )
    access_type: int = Field(
        default=AccessType.DENY,
        sa_column=Column(SmallInteger, nullable=False),
    )
    priority: int = Field(
        default=0,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("0")),
        description="Higher priority wins",
    )
    reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Shown verbatim to the technician on denial",
    )
    is_permanent: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=text("true")),
    )
    valid_from: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    valid_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    notes: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    status: int = Field(
        default=RestrictionStatus.ACTIVE,
        sa_column=Column(SmallInteger, nullable=False, server_default=text("1")),
    )
    created_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    updated_by: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        CheckConstraint(
            "(device_id IS NULL) <> (tag_id IS NULL)",
            name="ck_imei_restriction_single_target",
        ),
        Index("ix_imei_restriction_technician_status", "technician_id", "status"),
    )

    @property
    def is_device_scoped(self) -> bool:
        return self.device_id is not None


# ============================================================================
# VERIFICATION AND AUDIT
# ============================================================================


class VerificationLog(TableModel, table=True):
    """One check of a device by a technician. Write-once."""

    __tablename__ = "verification_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    technician_id: int = Field(
        sa_column=Column(Integer, ForeignKey("technicians.id", ondelete="RESTRICT"), nullable=False),
    )
    device_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    imei: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    verification_status: str = Field(
        default="Verified",
        sa_column=Column(String(50), nullable=False, server_default=text("'Verified'")),
    )
    notes: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    latitude: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    longitude: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    gps_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    verified_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        Index("ix_verification_technician_device_time", "technician_id", "device_id", "verified_at"),
        Index("ix_verification_device_id", "device_id"),
        Index("ix_verification_verified_at", "verified_at"),
    )


class AuditLog(TableModel, table=True):
    """Append-only record of sensitive actions."""

    __tablename__ = "audit_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    username: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    action: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Action performed (LOGIN, IMEI_ACCESS_DENIED, CREATE, ...)",
    )
    entity_type: str = Field(sa_column=Column(String(100), nullable=False))
    entity_id: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    old_values: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    new_values: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, sa_column=Column(String(45), nullable=True))
    user_agent: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    request_path: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    request_method: Optional[str] = Field(default=None, sa_column=Column(String(10), nullable=True))
    details: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )

    __table_args__ = (
        Index("ix_audit_log_user_id", "user_id"),
        Index("ix_audit_log_action", "action"),
        Index("ix_audit_log_created_at", "created_at"),
    )
