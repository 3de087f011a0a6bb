"""
User Service - console account administration.

Accounts are soft-deleted (status DELETED). Giving a user the TECHNICIAN
role creates its technician profile when none exists.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from core.security import hash_password, verify_password
from db.enums import AuditAction, CallerRole, TechnicianStatus, UserStatus
from db.models import User, utc_now
from repositories.reseller_repository import ResellerRepository
from repositories.role_repository import RoleRepository
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from schemas.common import PagedResult
from schemas.user import PasswordChange, PasswordReset, UserCreate, UserFilter, UserRead, UserUpdate
from services.audit_service import AuditService

logger = logging.getLogger(__name__)


class UserService:
    """Service for user account operations."""

    @staticmethod
    async def _to_read(db: AsyncSession, user: User) -> UserRead:
        reseller_name = None
        if user.reseller_id is not None:
            reseller = await ResellerRepository.find_by_id(db, user.reseller_id)
            reseller_name = reseller.company_name if reseller else None
        technician = await TechnicianRepository.find_by_user_id(db, user.id)

        return UserRead.model_validate(user).model_copy(
            update={
                "reseller_name": reseller_name,
                "roles": await UserRepository.get_role_names(db, user.id),
                "technician_id": technician.id if technician else None,
            }
        )

    @staticmethod
    async def _resolve_role_ids(
        db: AsyncSession, role_ids: Optional[List[int]], role_names: Optional[List[str]]
    ) -> List[int]:
        """Role ids win over names; unknown ids are rejected, unknown names skipped."""
        if role_ids:
            for role_id in role_ids:
                if await RoleRepository.find_by_id(db, role_id) is None:
                    raise NotFoundError("Role", role_id)
            return list(role_ids)
        if role_names:
            return await UserRepository.find_role_ids(db, role_names)
        return []

    @staticmethod
    async def _ensure_technician_profile(
        db: AsyncSession, user: User, role_ids: Sequence[int], actor_id: Optional[int]
    ) -> None:
        technician_role = await RoleRepository.find_by_name(db, CallerRole.TECHNICIAN.value)
        if technician_role is None or technician_role.id not in role_ids:
            return
        if await TechnicianRepository.find_by_user_id(db, user.id) is not None:
            return

        now = utc_now()
        technician = await TechnicianRepository.create(
            db,
            obj_in={
                "user_id": user.id,
                "reseller_id": user.reseller_id,
                "status": TechnicianStatus.ACTIVE,
                "created_by": actor_id,
                "updated_by": actor_id,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(f"Created technician {technician.id} for user {user.id}")

    @staticmethod
    @critical_database_operation("list_users")
    async def list_users(db: AsyncSession, filters: UserFilter) -> PagedResult[UserRead]:
        """List users, newest first, optionally scoped to one reseller."""
        users, total = await UserRepository.search(
            db,
            search_term=filters.search,
            status=filters.status,
            reseller_id=filters.reseller_id,
            exclude_super_admin=filters.exclude_super_admin,
            page=filters.page,
            per_page=filters.page_size,
        )
        items = [await UserService._to_read(db, user) for user in users]
        return PagedResult[UserRead](items=items, total_count=total, page=filters.page, page_size=filters.page_size)

    @staticmethod
    @critical_database_operation("get_user")
    async def get_user(db: AsyncSession, user_id: int) -> Optional[UserRead]:
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            return None
        return await UserService._to_read(db, user)

    @staticmethod
    @critical_database_operation("get_user_by_username")
    async def get_user_by_username(db: AsyncSession, username: str) -> Optional[UserRead]:
        user = await UserRepository.find_by_username(db, username)
        if user is None:
            return None
        return await UserService._to_read(db, user)

    @staticmethod
    @critical_database_operation("is_super_admin")
    async def is_super_admin(db: AsyncSession, user_id: int) -> bool:
        role_names = await UserRepository.get_role_names(db, user_id)
        return CallerRole.from_role_names(role_names) is CallerRole.SUPER_ADMIN

    @staticmethod
    @transactional_database_operation("create_user")
    @log_database_operation("user creation", level="info")
    async def create_user(
        db: AsyncSession,
        user_data: UserCreate,
        created_by: Optional[int] = None,
    ) -> UserRead:
        """
        Create a user account with its role assignments.

        Raises:
            ValidationError: Username or email already in use
            NotFoundError: Reseller or role id does not exist
        """
        if await UserRepository.find_by_username(db, user_data.username) is not None:
            raise ValidationError(f"Username '{user_data.username}' already exists", field="username")
        if await UserRepository.find_by_email(db, user_data.email) is not None:
            raise ValidationError(f"Email '{user_data.email}' already exists", field="email")
        if user_data.reseller_id is not None and await ResellerRepository.find_by_id(db, user_data.reseller_id) is None:
            raise NotFoundError("Reseller", user_data.reseller_id)

        role_ids = await UserService._resolve_role_ids(db, user_data.role_ids, user_data.roles)

        now = utc_now()
        user = await UserRepository.create(
            db,
            obj_in={
                "username": user_data.username,
                "email": user_data.email,
                "password_hash": hash_password(user_data.password),
                "mobile": user_data.mobile,
                "phone": user_data.phone,
                "alias_name": user_data.alias_name,
                "full_name": user_data.full_name,
                "reseller_id": user_data.reseller_id,
                "status": user_data.status,
                "lockout_until": user_data.lockout_until if user_data.status == UserStatus.LOCKED else None,
                "created_by": created_by,
                "updated_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )

        if role_ids:
            await UserRepository.replace_roles(db, user.id, role_ids, created_by=created_by)
            await UserService._ensure_technician_profile(db, user, role_ids, created_by)

        await AuditService.log(
            db,
            AuditAction.CREATE,
            "User",
            user.id,
            user_id=created_by,
            new_values=user_data.model_dump(exclude={"password"}, exclude_unset=True),
        )
        return await UserService._to_read(db, user)

    @staticmethod
    @transactional_database_operation("update_user")
    @log_database_operation("user update", level="info")
    async def update_user(
        db: AsyncSession,
        user_id: int,
        update_data: UserUpdate,
        updated_by: Optional[int] = None,
    ) -> UserRead:
        """
        Partially update a user. A non-empty role list replaces all roles.

        Raises:
            NotFoundError: User, reseller or role does not exist
            ValidationError: Email already used by another user
        """
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        changes = update_data.model_dump(exclude_unset=True, exclude={"role_ids", "roles"})

        if changes.get("email") is not None and changes["email"].lower() != user.email.lower():
            other = await UserRepository.find_by_email(db, changes["email"])
            if other is not None and other.id != user_id:
                raise ValidationError(f"Email '{changes['email']}' already exists", field="email")
        elif "email" in changes and changes["email"] is None:
            del changes["email"]

        if changes.get("reseller_id") is not None:
            if await ResellerRepository.find_by_id(db, changes["reseller_id"]) is None:
                raise NotFoundError("Reseller", changes["reseller_id"])

        if changes.get("status") is not None:
            changes["status"] = int(changes["status"])
            if changes["status"] != UserStatus.LOCKED:
                changes["lockout_until"] = None
        elif "lockout_until" in changes and user.status != UserStatus.LOCKED:
            del changes["lockout_until"]

        old_values = {field: getattr(user, field) for field in changes}
        changes["updated_by"] = updated_by
        changes["updated_at"] = utc_now()
        user = await UserRepository.update(db, id_value=user_id, obj_in=changes)

        role_ids = await UserService._resolve_role_ids(db, update_data.role_ids, update_data.roles)
        if role_ids:
            old_values["roles"] = await UserRepository.get_role_names(db, user_id)
            await UserRepository.replace_roles(db, user_id, role_ids, created_by=updated_by)
            await UserService._ensure_technician_profile(db, user, role_ids, updated_by)

        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "User",
            user_id,
            user_id=updated_by,
            old_values=old_values,
            new_values=update_data,
        )
        return await UserService._to_read(db, user)

    @staticmethod
    @transactional_database_operation("delete_user")
    @log_database_operation("user deletion", level="info")
    async def delete_user(db: AsyncSession, user_id: int, deleted_by: Optional[int] = None) -> bool:
        """Soft delete a user by setting status DELETED. False when missing."""
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            return False

        old_values = {"userId": user.id, "username": user.username, "email": user.email, "status": user.status}
        user.status = UserStatus.DELETED
        user.updated_by = deleted_by
        user.updated_at = utc_now()
        await db.flush()

        await AuditService.log(db, AuditAction.DELETE, "User", user_id, user_id=deleted_by, old_values=old_values)
        return True

    @staticmethod
    @transactional_database_operation("change_password")
    async def change_password(db: AsyncSession, user_id: int, password_data: PasswordChange) -> bool:
        """
        Change a user's own password. False when the user is missing.

        Raises:
            ValidationError: Current password is incorrect
        """
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            return False
        if not verify_password(password_data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", field="current_password")

        user.password_hash = hash_password(password_data.new_password)
        user.updated_at = utc_now()
        await db.flush()
        return True

    @staticmethod
    @transactional_database_operation("reset_password")
    @log_database_operation("password reset", level="info")
    async def reset_password(
        db: AsyncSession,
        user_id: int,
        password_data: PasswordReset,
        reset_by: Optional[int] = None,
    ) -> bool:
        """Set a new password on behalf of a user. False when the user is missing."""
        user = await UserRepository.find_by_id(db, user_id)
        if user is None:
            return False

        user.password_hash = hash_password(password_data.new_password)
        user.failed_login_attempts = 0
        user.updated_by = reset_by
        user.updated_at = utc_now()
        await db.flush()

        await AuditService.log(
            db, AuditAction.UPDATE, "User", user_id, user_id=reset_by, new_values={"passwordReset": True}
        )
        return True
