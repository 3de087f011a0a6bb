"""Service for managing tags and tag membership."""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.decorators import critical_database_operation, log_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction, TagScope, TagStatus
from db.models import Tag, TagItem, utc_now
from repositories.tag_repository import TagRepository
from schemas.common import PagedResult
from schemas.tag import TagCreate, TagFilter, TagItemCreate, TagItemRead, TagRead, TagUpdate
from services.audit_service import AuditService

logger = logging.getLogger(__name__)


class TagService:
    """Service for tag operations."""

    @staticmethod
    def _validate_scope(scope: int, reseller_id: Optional[int], user_id: Optional[int]) -> None:
        """Reseller tags need a reseller, user tags need a user."""
        if scope == TagScope.RESELLER and reseller_id is None:
            raise ValidationError("Reseller scope requires a reseller ID", field="reseller_id")
        if scope == TagScope.USER and user_id is None:
            raise ValidationError("User scope requires a user ID", field="user_id")

    @staticmethod
    async def _to_read(db: AsyncSession, tag: Tag) -> TagRead:
        item_count = await TagRepository.count_items(db, tag.id)
        return TagRead.model_validate(tag).model_copy(update={"item_count": item_count})

    @staticmethod
    async def _require_tag(db: AsyncSession, tag_id: int) -> Tag:
        tag = await TagRepository.find_by_id(db, tag_id)
        if tag is None:
            raise NotFoundError("Tag", tag_id)
        return tag

    @staticmethod
    @critical_database_operation("list_tags")
    async def list_tags(db: AsyncSession, filters: TagFilter) -> PagedResult[TagRead]:
        """
        List tags with search, scope, reseller and status filters.

        Args:
            db: Database session
            filters: Filter and paging criteria

        Returns:
            Page of tags ordered by name
        """
        tags, total = await TagRepository.search(
            db,
            search_term=filters.search,
            scope=filters.scope,
            reseller_id=filters.reseller_id,
            status=filters.status,
            page=filters.page,
            per_page=filters.page_size,
        )
        items = [await TagService._to_read(db, tag) for tag in tags]
        return PagedResult[TagRead](items=items, total_count=total, page=filters.page, page_size=filters.page_size)

    @staticmethod
    @critical_database_operation("get_tag")
    async def get_tag(db: AsyncSession, tag_id: int) -> Optional[TagRead]:
        """
        Get a single tag by ID.

        Returns:
            Tag or None if not found
        """
        tag = await TagRepository.find_by_id(db, tag_id)
        if tag is None:
            return None
        return await TagService._to_read(db, tag)

    @staticmethod
    @transactional_database_operation(operation_name="create_tag")
    @log_database_operation("tag creation", level="info")
    async def create_tag(
        db: AsyncSession,
        tag_data: TagCreate,
        created_by: Optional[int] = None,
    ) -> TagRead:
        """
        Create a new tag.

        Args:
            db: Database session
            tag_data: Tag creation data
            created_by: User ID who created the tag

        Returns:
            Created tag
        """
        TagService._validate_scope(tag_data.scope, tag_data.reseller_id, tag_data.user_id)

        now = utc_now()
        tag = await TagRepository.create(
            db,
            obj_in={
                "tag_name": tag_data.tag_name,
                "description": tag_data.description,
                "scope": int(tag_data.scope),
                "reseller_id": tag_data.reseller_id,
                "user_id": tag_data.user_id,
                "color": tag_data.color,
                "status": int(tag_data.status),
                "created_by": created_by,
                "updated_by": created_by,
                "created_at": now,
                "updated_at": now,
            },
        )

        await AuditService.log(db, AuditAction.CREATE, "Tag", tag.id, user_id=created_by, new_values=tag_data)
        return await TagService._to_read(db, tag)

    @staticmethod
    @transactional_database_operation(operation_name="update_tag")
    @log_database_operation("tag update", level="info")
    async def update_tag(
        db: AsyncSession,
        tag_id: int,
        update_data: TagUpdate,
        updated_by: Optional[int] = None,
    ) -> Optional[TagRead]:
        """
        Update a tag.

        Args:
            db: Database session
            tag_id: Tag ID to update
            update_data: Update data
            updated_by: User ID who updated the tag

        Returns:
            Updated tag or None if not found
        """
        tag = await TagRepository.find_by_id(db, tag_id)
        if not tag:
            return None

        changes = update_data.model_dump(exclude_unset=True)
        if changes.get("tag_name") is not None:
            changes["tag_name"] = changes["tag_name"].strip()
            if not changes["tag_name"]:
                raise ValidationError("Tag name must not be blank", field="tag_name")

        TagService._validate_scope(
            changes.get("scope", tag.scope),
            changes.get("reseller_id", tag.reseller_id),
            changes.get("user_id", tag.user_id),
        )

        for field in ("scope", "status"):
            if changes.get(field) is not None:
                changes[field] = int(changes[field])
        changes["updated_by"] = updated_by
        changes["updated_at"] = utc_now()

        tag = await TagRepository.update(db, id_value=tag_id, obj_in=changes)

        await AuditService.log(db, AuditAction.UPDATE, "Tag", tag_id, user_id=updated_by, new_values=update_data)
        return await TagService._to_read(db, tag)

    @staticmethod
    @transactional_database_operation(operation_name="delete_tag")
    @log_database_operation("tag deletion", level="info")
    async def delete_tag(db: AsyncSession, tag_id: int, deleted_by: Optional[int] = None) -> bool:
        """
        Soft delete a tag (status Inactive).

        Inactive tags no longer contribute device membership to restrictions.

        Returns:
            True if deleted, False if not found
        """
        tag = await TagRepository.find_by_id(db, tag_id)
        if not tag:
            return False

        tag.status = TagStatus.INACTIVE
        tag.updated_by = deleted_by
        tag.updated_at = utc_now()
        await db.flush()

        await AuditService.log(db, AuditAction.DELETE, "Tag", tag_id, user_id=deleted_by)
        return True

    @staticmethod
    @critical_database_operation("list_tag_items")
    async def list_items(db: AsyncSession, tag_id: int) -> List[TagItemRead]:
        """List all items of a tag, oldest first."""
        await TagService._require_tag(db, tag_id)
        items = await TagRepository.find_tag_items_by_tag(db, tag_id)
        return [TagItemRead.model_validate(item) for item in items]

    @staticmethod
    @transactional_database_operation(operation_name="add_tag_items")
    @log_database_operation("tag item addition", level="info")
    async def add_items(
        db: AsyncSession,
        tag_id: int,
        items: List[TagItemCreate],
        added_by: Optional[int] = None,
    ) -> List[TagItemRead]:
        """
        Add entities to a tag.

        Adding an entity that is already a member is a no-op that returns
        the existing item.

        Raises:
            NotFoundError: Tag does not exist
        """
        await TagService._require_tag(db, tag_id)

        results = []
        added = 0
        for item_data in items:
            existing = await TagRepository.find_tag_item(db, tag_id, item_data.entity_type, item_data.entity_id)
            if existing is not None:
                results.append(TagItemRead.model_validate(existing))
                continue

            item = await TagRepository.add_tag_item(
                db,
                TagItem(
                    tag_id=tag_id,
                    entity_type=int(item_data.entity_type),
                    entity_id=item_data.entity_id,
                    entity_identifier=item_data.entity_identifier,
                    created_at=utc_now(),
                ),
            )
            results.append(TagItemRead.model_validate(item))
            added += 1

        if added:
            await AuditService.log(
                db,
                AuditAction.UPDATE,
                "Tag",
                tag_id,
                user_id=added_by,
                new_values={"addedItems": added},
            )
        return results

    @staticmethod
    @transactional_database_operation(operation_name="remove_tag_item")
    @log_database_operation("tag item removal", level="info")
    async def remove_item(
        db: AsyncSession,
        tag_id: int,
        entity_type: int,
        entity_id: int,
        removed_by: Optional[int] = None,
    ) -> bool:
        """
        Remove an entity from a tag.

        Returns:
            True if removed, False if the entity was not a member
        """
        item = await TagRepository.find_tag_item(db, tag_id, entity_type, entity_id)
        if item is None:
            return False

        await TagRepository.remove_tag_item(db, item)
        await AuditService.log(
            db,
            AuditAction.UPDATE,
            "Tag",
            tag_id,
            user_id=removed_by,
            old_values={"entityType": int(entity_type), "entityId": entity_id},
        )
        return True
