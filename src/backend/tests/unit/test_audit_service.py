"""
Unit tests for the audit trail service.
"""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from db.enums import AuditAction
from repositories.audit_log_repository import AuditLogRepository
from repositories.user_repository import UserRepository
from schemas.audit import AuditFilter
from schemas.tag import TagUpdate
from services.audit_service import AuditService
from tests.factories import UserFactory


class TestLog:
    @pytest.mark.asyncio
    async def test_entry_joins_callers_session(self, mock_db):
        user = UserFactory.create(id=10, username="omar.salem")

        with patch.object(UserRepository, "find_by_id", AsyncMock(return_value=user)):
            entry = await AuditService.log(
                mock_db,
                AuditAction.UPDATE,
                "Tag",
                7,
                user_id=10,
                old_values={"verifiedAt": datetime(2024, 6, 1, 8, 0)},
                new_values=TagUpdate(color="red"),
            )

        mock_db.add.assert_called_once_with(entry)
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_awaited()
        assert entry.action == "UPDATE"
        assert entry.entity_id == "7"
        assert entry.username == "omar.salem"
        assert entry.old_values == {"verifiedAt": "2024-06-01T08:00:00"}
        assert entry.new_values == {"color": "red"}

    @pytest.mark.asyncio
    async def test_anonymous_entry(self, mock_db):
        entry = await AuditService.log(mock_db, "LOGIN_FAILED", "User")

        assert entry.user_id is None
        assert entry.username is None
        assert entry.entity_id is None


class TestGetLogs:
    @pytest.mark.asyncio
    async def test_to_date_covers_whole_day(self, mock_db):
        search = AsyncMock(return_value=([], 0))

        with patch.object(AuditLogRepository, "search", search):
            await AuditService.get_logs(mock_db, AuditFilter(to_date=datetime(2024, 6, 1, 9, 30)))

        assert search.await_args.kwargs["to_date"] == datetime(2024, 6, 2)
