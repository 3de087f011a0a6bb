"""
Unit tests for verification log queries and statistics.
"""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from repositories.verification_log_repository import VerificationLogRepository
from services.verification_log_service import VerificationLogService
from tests.factories import VerificationLogFactory

# Wednesday
NOW = datetime(2024, 6, 5, 15, 0, 0)


class TestComputeStatistics:
    """Tests for the period counters."""

    def test_empty(self):
        stats = VerificationLogService.compute_statistics([], NOW)

        assert stats.total_verifications == 0
        assert stats.unique_devices == 0
        assert stats.last_verification_at is None

    def test_periods(self):
        rows = [
            (1, datetime(2024, 6, 5, 9, 0)),   # today
            (2, datetime(2024, 6, 2, 0, 0)),   # Sunday, start of week
            (1, datetime(2024, 6, 1, 23, 59)),  # Saturday, previous week
            (3, datetime(2024, 5, 31, 12, 0)),  # previous month
        ]

        stats = VerificationLogService.compute_statistics(rows, NOW)

        assert stats.total_verifications == 4
        assert stats.unique_devices == 3
        assert stats.verifications_today == 1
        assert stats.verifications_this_week == 2
        assert stats.verifications_this_month == 3
        assert stats.last_verification_at == datetime(2024, 6, 5, 9, 0)

    def test_week_starting_today_on_sunday(self):
        sunday = datetime(2024, 6, 2, 10, 0)
        rows = [(1, datetime(2024, 6, 2, 8, 0)), (1, datetime(2024, 6, 1, 8, 0))]

        stats = VerificationLogService.compute_statistics(rows, sunday)

        assert stats.verifications_today == 1
        assert stats.verifications_this_week == 1


class TestRecentLogs:
    """Tests for the recent-log listings."""

    @pytest.mark.asyncio
    async def test_recent_by_technician(self, mock_db):
        entries = [VerificationLogFactory.create(id=2, technician_id=5), VerificationLogFactory.create(id=1, technician_id=5)]

        with patch.object(VerificationLogRepository, "find_recent", AsyncMock(return_value=entries)) as find_recent:
            result = await VerificationLogService.get_recent_by_technician(mock_db, 5, limit=2)

        assert [item.id for item in result] == [2, 1]
        find_recent.assert_awaited_once_with(mock_db, technician_id=5, limit=2)

    @pytest.mark.asyncio
    async def test_database_error_propagates(self, mock_db):
        error = OperationalError("SELECT 1", {}, Exception("connection lost"))

        with patch.object(VerificationLogRepository, "find_recent", AsyncMock(side_effect=error)):
            with pytest.raises(OperationalError):
                await VerificationLogService.get_recent_by_device(mock_db, 1001)

        with patch.object(VerificationLogRepository, "find_recent", AsyncMock(side_effect=error)):
            with pytest.raises(OperationalError):
                await VerificationLogService.get_recent_by_technician(mock_db, 5)
