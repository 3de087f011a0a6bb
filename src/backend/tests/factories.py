"""
Test data factories for generating realistic test data.

Factories build unsaved model instances; add them to a session to persist.

Usage:
    user = UserFactory.create()
    technician = TechnicianFactory.create(user_id=user.id)
    rule = RestrictionFactory.create_device_rule(technician_id=technician.id, device_id=1001)
"""

import uuid
from datetime import datetime
from typing import Optional

from db.enums import (
    AccessType,
    RestrictionStatus,
    TagEntityType,
    TagScope,
    TagStatus,
    TechnicianStatus,
    UserStatus,
)
from db.models import (
    ImeiRestriction,
    Permission,
    Reseller,
    Role,
    Tag,
    TagItem,
    Technician,
    User,
    VerificationLog,
    utc_now,
)

# A valid 15-digit IMEI (Luhn check digit included)
VALID_IMEI = "490154203237518"


def _unique_suffix() -> str:
    """Generate a unique suffix for test data."""
    return uuid.uuid4().hex[:8]


class ResellerFactory:
    """Factory for creating Reseller instances."""

    @classmethod
    def create(cls, company_name: Optional[str] = None, **kwargs) -> Reseller:
        if company_name is None:
            company_name = f"Tracking Co {_unique_suffix()}"
        return Reseller(company_name=company_name, **kwargs)


class UserFactory:
    """Factory for creating User instances."""

    first_names = ["Ahmed", "Mohamed", "Fatma", "Sara", "Omar", "Layla", "Youssef", "Nour"]
    last_names = ["Hassan", "Ali", "Ibrahim", "Mahmoud", "Khalil", "Mostafa", "Salem", "Farouk"]

    @classmethod
    def create(
        cls,
        username: Optional[str] = None,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        reseller_id: Optional[int] = None,
        status: int = UserStatus.ACTIVE,
        id: Optional[int] = None,
    ) -> User:
        """Create a User instance with realistic defaults."""
        suffix = _unique_suffix()

        idx = hash(suffix) % len(cls.first_names)
        first_name = cls.first_names[idx]
        last_name = cls.last_names[idx]

        if username is None:
            username = f"{first_name.lower()}.{last_name.lower()}_{suffix}"
        if email is None:
            email = f"{username}@example.com"
        if full_name is None:
            full_name = f"{first_name} {last_name}"

        return User(
            id=id,
            username=username,
            email=email,
            full_name=full_name,
            reseller_id=reseller_id,
            status=status,
        )


class TechnicianFactory:
    """Factory for creating Technician instances."""

    @classmethod
    def create(
        cls,
        user_id: int = 1,
        reseller_id: Optional[int] = None,
        daily_limit: int = 0,
        status: int = TechnicianStatus.ACTIVE,
        work_region: Optional[str] = "Cairo",
        id: Optional[int] = None,
    ) -> Technician:
        return Technician(
            id=id,
            user_id=user_id,
            reseller_id=reseller_id,
            employee_code=f"EMP-{_unique_suffix()}",
            work_region=work_region,
            daily_limit=daily_limit,
            status=status,
        )


class RestrictionFactory:
    """Factory for creating ImeiRestriction instances."""

    @classmethod
    def create(
        cls,
        technician_id: int = 1,
        device_id: Optional[int] = None,
        tag_id: Optional[int] = None,
        access_type: int = AccessType.DENY,
        priority: int = 0,
        reason: Optional[str] = None,
        is_permanent: bool = True,
        valid_from: Optional[datetime] = None,
        valid_until: Optional[datetime] = None,
        status: int = RestrictionStatus.ACTIVE,
        created_at: Optional[datetime] = None,
        id: Optional[int] = None,
    ) -> ImeiRestriction:
        return ImeiRestriction(
            id=id,
            technician_id=technician_id,
            device_id=device_id,
            tag_id=tag_id,
            access_type=access_type,
            priority=priority,
            reason=reason,
            is_permanent=is_permanent,
            valid_from=valid_from,
            valid_until=valid_until,
            status=status,
            created_at=created_at or utc_now(),
        )

    @classmethod
    def create_device_rule(cls, device_id: int = 1001, **kwargs) -> ImeiRestriction:
        return cls.create(device_id=device_id, **kwargs)

    @classmethod
    def create_tag_rule(cls, tag_id: int, **kwargs) -> ImeiRestriction:
        return cls.create(tag_id=tag_id, **kwargs)


class TagFactory:
    """Factory for creating Tag instances."""

    @classmethod
    def create(
        cls,
        tag_name: Optional[str] = None,
        scope: int = TagScope.GLOBAL,
        reseller_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: int = TagStatus.ACTIVE,
        id: Optional[int] = None,
    ) -> Tag:
        if tag_name is None:
            tag_name = f"Fleet {_unique_suffix()}"
        return Tag(
            id=id,
            tag_name=tag_name,
            scope=scope,
            reseller_id=reseller_id,
            user_id=user_id,
            status=status,
        )


class TagItemFactory:
    """Factory for creating TagItem instances."""

    @classmethod
    def create(
        cls,
        tag_id: int,
        entity_id: int = 1001,
        entity_type: int = TagEntityType.DEVICE,
        entity_identifier: Optional[str] = None,
    ) -> TagItem:
        return TagItem(
            tag_id=tag_id,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=entity_identifier,
        )


class VerificationLogFactory:
    """Factory for creating VerificationLog instances."""

    @classmethod
    def create(
        cls,
        technician_id: int = 1,
        device_id: int = 1001,
        imei: Optional[str] = VALID_IMEI,
        verified_at: Optional[datetime] = None,
        verification_status: str = "Verified",
        id: Optional[int] = None,
    ) -> VerificationLog:
        return VerificationLog(
            id=id,
            technician_id=technician_id,
            device_id=device_id,
            imei=imei,
            verification_status=verification_status,
            verified_at=verified_at or utc_now(),
        )


class RoleFactory:
    """Factory for creating Role instances."""

    @classmethod
    def create(
        cls,
        role_name: Optional[str] = None,
        is_system_role: bool = False,
        reseller_id: Optional[int] = None,
        id: Optional[int] = None,
    ) -> Role:
        if role_name is None:
            role_name = f"Custom role {_unique_suffix()}"
        return Role(id=id, role_name=role_name, is_system_role=is_system_role, reseller_id=reseller_id)


class PermissionFactory:
    """Factory for creating Permission instances."""

    @classmethod
    def create(cls, permission_name: str = "imei.view", id: Optional[int] = None) -> Permission:
        return Permission(
            id=id,
            permission_name=permission_name,
            module=permission_name.split(".", 1)[0],
        )
