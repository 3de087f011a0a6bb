"""
Unit tests for the standalone session helper.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

import core.database as database


def _session_factory(session):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestCleanupSession:
    @pytest.mark.asyncio
    async def test_commits_on_success(self):
        session = AsyncMock(spec=AsyncSession)

        with patch.object(database, "AsyncSessionLocal", _session_factory(session)):
            async with database.get_cleanup_session() as db:
                assert db is session

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self):
        session = AsyncMock(spec=AsyncSession)

        with patch.object(database, "AsyncSessionLocal", _session_factory(session)):
            with pytest.raises(RuntimeError):
                async with database.get_cleanup_session():
                    raise RuntimeError("seed failed")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
