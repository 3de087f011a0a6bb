"""
Base repository with generic data access operations.

Repositories never commit: they add and flush so generated ids are
available, and the calling service decides the transaction boundary
(see core.decorators.transactional_database_operation).
"""
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlmodel import SQLModel

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing common CRUD operations.

    Usage:
        class TechnicianRepository(BaseRepository[Technician]):
            model = Technician
    """

    model: Type[ModelType] = None

    @classmethod
    def _apply_filters(cls, stmt: Select, filters: Optional[Dict[str, Any]]) -> Select:
        """Add equality filters, skipping None values."""
        if filters:
            for field, value in filters.items():
                if value is not None:
                    stmt = stmt.where(getattr(cls.model, field) == value)
        return stmt

    @classmethod
    async def find_by_id(cls, db: AsyncSession, id_value: Any) -> Optional[ModelType]:
        """
        Find a single record by ID.

        Args:
            db: Database session
            id_value: The ID value to search for

        Returns:
            Model instance or None if not found
        """
        stmt = select(cls.model).where(cls.model.id == id_value)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def find_one(
        cls,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Optional[ModelType]:
        """Find the first record matching filters."""
        stmt = cls._apply_filters(select(cls.model), filters).limit(1)
        result = await db.execute(stmt)
        return result.scalars().first()

    @classmethod
    async def find_all(
        cls,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Any] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[ModelType]:
        """
        Find all records matching filters.

        Args:
            db: Database session
            filters: Dictionary of field:value filters (None values ignored)
            order_by: Column to order by
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            List of model instances
        """
        stmt = cls._apply_filters(select(cls.model), filters)

        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_paginated(
        cls,
        db: AsyncSession,
        *,
        page: int = 1,
        per_page: int = 20,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Any] = None
    ) -> Tuple[List[ModelType], int]:
        """
        Find records with pagination and total count.

        Returns:
            Tuple of (list of records, total count)
        """
        stmt = cls._apply_filters(select(cls.model), filters)
        count_stmt = cls._apply_filters(select(func.count(cls.model.id)), filters)

        return await cls._paginate(db, stmt, count_stmt, page=page, per_page=per_page, order_by=order_by)

    @classmethod
    async def _paginate(
        cls,
        db: AsyncSession,
        stmt: Select,
        count_stmt: Select,
        *,
        page: int,
        per_page: int,
        order_by: Optional[Any] = None,
    ) -> Tuple[List[ModelType], int]:
        count_result = await db.execute(count_stmt)
        total = count_result.scalar() or 0

        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)

        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    @classmethod
    async def count(
        cls,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None
    ) -> int:
        """Count records matching filters."""
        stmt = cls._apply_filters(select(func.count(cls.model.id)), filters)
        result = await db.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def create(cls, db: AsyncSession, *, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record and flush it so its id is populated.

        Args:
            db: Database session
            obj_in: Dictionary of field values

        Returns:
            Created model instance
        """
        db_obj = cls.model(**obj_in)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    @classmethod
    async def update(
        cls,
        db: AsyncSession,
        *,
        id_value: Any,
        obj_in: Dict[str, Any],
    ) -> Optional[ModelType]:
        """
        Update an existing record.

        Returns:
            Updated model instance or None if not found
        """
        db_obj = await cls.find_by_id(db, id_value)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    @classmethod
    async def delete(cls, db: AsyncSession, *, id_value: Any) -> bool:
        """
        Hard delete a record.

        Returns:
            True if deleted, False if not found
        """
        db_obj = await cls.find_by_id(db, id_value)
        if not db_obj:
            return False

        await db.delete(db_obj)
        await db.flush()
        return True

    @classmethod
    async def exists(cls, db: AsyncSession, *, filters: Dict[str, Any]) -> bool:
        """Check if a record exists matching filters."""
        count = await cls.count(db, filters=filters)
        return count > 0
