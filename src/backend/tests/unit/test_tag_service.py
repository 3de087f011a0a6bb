"""
Unit tests for tag management.
"""

from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction, TagEntityType, TagScope, TagStatus
from repositories.tag_repository import TagRepository
from schemas.tag import TagCreate, TagItemCreate, TagUpdate
from services.audit_service import AuditService
from services.tag_service import TagService
from tests.factories import TagFactory, TagItemFactory


def _with_id(item, item_id):
    item.id = item_id
    return item


class TestCreateTag:
    """Tests for tag creation."""

    @pytest.mark.asyncio
    async def test_reseller_scope_requires_reseller(self, mock_db):
        with pytest.raises(ValidationError):
            await TagService.create_tag(mock_db, TagCreate(tag_name="Fleet", scope=TagScope.RESELLER))

    @pytest.mark.asyncio
    async def test_user_scope_requires_user(self, mock_db):
        with pytest.raises(ValidationError):
            await TagService.create_tag(mock_db, TagCreate(tag_name="Mine", scope=TagScope.USER))

    @pytest.mark.asyncio
    async def test_creates_and_audits(self, mock_db):
        tag = TagFactory.create(id=7, tag_name="Fleet A", scope=TagScope.RESELLER, reseller_id=3)
        create = AsyncMock(return_value=tag)
        audit = AsyncMock()

        with patch.object(TagRepository, "create", create), \
             patch.object(TagRepository, "count_items", AsyncMock(return_value=0)), \
             patch.object(AuditService, "log", audit):
            result = await TagService.create_tag(
                mock_db,
                TagCreate(tag_name="  Fleet A  ", scope=TagScope.RESELLER, reseller_id=3),
                created_by=1,
            )

        assert create.await_args.kwargs["obj_in"]["tag_name"] == "Fleet A"
        assert result.id == 7
        assert result.scope_text == "Reseller"
        assert result.status_text == "Active"
        assert audit.await_args.args[1] is AuditAction.CREATE
        mock_db.commit.assert_awaited_once()


class TestUpdateTag:
    """Tests for tag updates."""

    @pytest.mark.asyncio
    async def test_missing_tag_returns_none(self, mock_db):
        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=None)):
            assert await TagService.update_tag(mock_db, 7, TagUpdate(color="red")) is None

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, mock_db):
        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=TagFactory.create(id=7))):
            with pytest.raises(ValidationError):
                await TagService.update_tag(mock_db, 7, TagUpdate(tag_name="   "))

    @pytest.mark.asyncio
    async def test_scope_change_is_validated_against_stored_values(self, mock_db):
        tag = TagFactory.create(id=7, scope=TagScope.GLOBAL)

        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=tag)):
            with pytest.raises(ValidationError):
                await TagService.update_tag(mock_db, 7, TagUpdate(scope=TagScope.USER))


class TestDeleteTag:
    """Tests for soft deletion."""

    @pytest.mark.asyncio
    async def test_soft_delete_marks_inactive(self, mock_db):
        tag = TagFactory.create(id=7)

        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=tag)), \
             patch.object(AuditService, "log", AsyncMock()):
            assert await TagService.delete_tag(mock_db, 7, deleted_by=1) is True

        assert tag.status == TagStatus.INACTIVE
        assert tag.updated_by == 1

    @pytest.mark.asyncio
    async def test_missing_tag(self, mock_db):
        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=None)):
            assert await TagService.delete_tag(mock_db, 7) is False


class TestTagItems:
    """Tests for membership changes."""

    @pytest.mark.asyncio
    async def test_list_items_of_missing_tag_raises(self, mock_db):
        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await TagService.list_items(mock_db, 7)

    @pytest.mark.asyncio
    async def test_add_items_is_idempotent(self, mock_db):
        existing = _with_id(TagItemFactory.create(tag_id=7, entity_id=1001), 1)
        added = []

        async def add_tag_item(db, item):
            added.append(item)
            return _with_id(item, 2)

        async def find_tag_item(db, tag_id, entity_type, entity_id):
            return existing if entity_id == 1001 else None

        audit = AsyncMock()
        with patch.object(TagRepository, "find_by_id", AsyncMock(return_value=TagFactory.create(id=7))), \
             patch.object(TagRepository, "find_tag_item", side_effect=find_tag_item), \
             patch.object(TagRepository, "add_tag_item", side_effect=add_tag_item), \
             patch.object(AuditService, "log", audit):
            result = await TagService.add_items(
                mock_db,
                7,
                [TagItemCreate(entity_id=1001), TagItemCreate(entity_id=2002, entity_identifier="356938035643809")],
                added_by=1,
            )

        assert [item.id for item in result] == [1, 2]
        assert len(added) == 1
        assert added[0].entity_id == 2002
        assert result[1].entity_type_name == "Device"
        assert audit.await_args.kwargs["new_values"] == {"addedItems": 1}

    @pytest.mark.asyncio
    async def test_remove_missing_item(self, mock_db):
        with patch.object(TagRepository, "find_tag_item", AsyncMock(return_value=None)):
            assert await TagService.remove_item(mock_db, 7, TagEntityType.DEVICE, 1001) is False

    @pytest.mark.asyncio
    async def test_remove_item_audits_old_membership(self, mock_db):
        item = _with_id(TagItemFactory.create(tag_id=7, entity_id=1001), 1)
        remove = AsyncMock()
        audit = AsyncMock()

        with patch.object(TagRepository, "find_tag_item", AsyncMock(return_value=item)), \
             patch.object(TagRepository, "remove_tag_item", remove), \
             patch.object(AuditService, "log", audit):
            assert await TagService.remove_item(mock_db, 7, TagEntityType.DEVICE, 1001, removed_by=1) is True

        remove.assert_awaited_once_with(mock_db, item)
        assert audit.await_args.kwargs["old_values"] == {"entityType": 1, "entityId": 1001}
