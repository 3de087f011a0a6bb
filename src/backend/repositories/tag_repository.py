"""Repository for Tag and TagItem database operations."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.enums import TagStatus
from db.models import Tag, TagItem
from repositories.base_repository import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """Repository for tag operations."""

    model = Tag

    @classmethod
    async def search(
        cls,
        db: AsyncSession,
        *,
        search_term: Optional[str] = None,
        scope: Optional[int] = None,
        reseller_id: Optional[int] = None,
        status: Optional[int] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[Tag], int]:
        """Search tags by name with optional scope, reseller and status filters."""
        conditions = []
        if search_term:
            conditions.append(Tag.tag_name.ilike(f"%{search_term}%"))
        if scope is not None:
            conditions.append(Tag.scope == scope)
        if reseller_id is not None:
            conditions.append(Tag.reseller_id == reseller_id)
        if status is not None:
            conditions.append(Tag.status == status)

        stmt = select(Tag).where(*conditions)
        count_stmt = select(func.count(Tag.id)).where(*conditions)

        return await cls._paginate(db, stmt, count_stmt, page=page, per_page=per_page, order_by=Tag.tag_name.asc())

    @classmethod
    async def find_tag_items_by_tag(cls, db: AsyncSession, tag_id: int) -> List[TagItem]:
        """Find all items of a tag, oldest first."""
        stmt = select(TagItem).where(TagItem.tag_id == tag_id).order_by(TagItem.created_at.asc(), TagItem.id.asc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_tag_ids_for_entity(cls, db: AsyncSession, entity_type: int, entity_id: int) -> List[int]:
        """
        Find ids of active tags containing an entity.

        Inactive (soft-deleted) tags never contribute membership.
        """
        stmt = (
            select(TagItem.tag_id)
            .join(Tag, Tag.id == TagItem.tag_id)
            .where(
                TagItem.entity_type == entity_type,
                TagItem.entity_id == entity_id,
                Tag.status == TagStatus.ACTIVE,
            )
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def find_tag_item(
        cls, db: AsyncSession, tag_id: int, entity_type: int, entity_id: int
    ) -> Optional[TagItem]:
        """Find the membership row of one entity in a tag."""
        stmt = select(TagItem).where(
            TagItem.tag_id == tag_id,
            TagItem.entity_type == entity_type,
            TagItem.entity_id == entity_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @classmethod
    async def count_items(cls, db: AsyncSession, tag_id: int) -> int:
        stmt = select(func.count(TagItem.id)).where(TagItem.tag_id == tag_id)
        result = await db.execute(stmt)
        return result.scalar() or 0

    @classmethod
    async def add_tag_item(cls, db: AsyncSession, item: TagItem) -> TagItem:
        """Insert a tag item and flush it."""
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    @classmethod
    async def remove_tag_item(cls, db: AsyncSession, item: TagItem) -> None:
        await db.delete(item)
        await db.flush()
