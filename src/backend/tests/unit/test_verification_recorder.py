"""
Unit tests for the verification recorder.

Tests:
- Time-gap boundary
- New row vs. reused row
- Payload fields copied onto new rows
- Missing device id / unknown technician
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import NotFoundError, ValidationError
from repositories.technician_repository import TechnicianRepository
from repositories.verification_log_repository import VerificationLogRepository
from schemas.imei import DeviceRef, GpsData, VerificationPayload
from services.verification_recorder import TIME_GAP, VerificationRecorder
from tests.factories import TechnicianFactory, VerificationLogFactory

T0 = datetime(2024, 6, 1, 8, 0, 0)


async def _insert(db, entry):
    entry.id = 900
    return entry


class TestNeedsNewEntry:
    """Tests for the time-gap rule."""

    def test_no_prior_row(self):
        assert VerificationRecorder.needs_new_entry(None, T0) is True

    def test_inside_gap(self):
        assert VerificationRecorder.needs_new_entry(T0, T0 + timedelta(hours=1)) is False

    def test_just_before_boundary(self):
        assert VerificationRecorder.needs_new_entry(T0, T0 + TIME_GAP - timedelta(seconds=1)) is False

    def test_boundary_counts_as_new(self):
        assert VerificationRecorder.needs_new_entry(T0, T0 + TIME_GAP) is True

    def test_after_gap(self):
        assert VerificationRecorder.needs_new_entry(T0, T0 + timedelta(hours=5)) is True


class TestRecordVerification:
    """Tests for record_verification with mocked repositories."""

    @pytest.mark.asyncio
    async def test_missing_device_id_raises(self, mock_db):
        with pytest.raises(ValidationError):
            await VerificationRecorder.record_verification(mock_db, 5, DeviceRef(imei="490154203237518"))

    @pytest.mark.asyncio
    async def test_unknown_technician_raises(self, mock_db, device_ref):
        with patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await VerificationRecorder.record_verification(mock_db, 5, device_ref, now=T0)

    @pytest.mark.asyncio
    async def test_first_check_creates_row(self, mock_db, device_ref):
        insert = AsyncMock(side_effect=_insert)
        with patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=TechnicianFactory.create(id=5))), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=None)), \
             patch.object(VerificationLogRepository, "insert_verification", insert):
            result = await VerificationRecorder.record_verification(mock_db, 5, device_ref, now=T0)

        assert result.created is True
        assert result.verification_id == 900
        assert result.log.verified_at == T0
        assert result.log.device_id == device_ref.device_id
        assert result.log.imei == device_ref.imei
        insert.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_check_within_gap_reuses_row(self, mock_db, device_ref):
        prior = VerificationLogFactory.create(id=42, technician_id=5, device_id=device_ref.device_id, verified_at=T0)
        insert = AsyncMock(side_effect=_insert)

        with patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=TechnicianFactory.create(id=5))), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=prior)), \
             patch.object(VerificationLogRepository, "insert_verification", insert):
            result = await VerificationRecorder.record_verification(
                mock_db, 5, device_ref, now=T0 + timedelta(hours=1)
            )

        assert result.created is False
        assert result.verification_id == 42
        assert result.log.verified_at == T0
        insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_check_after_gap_creates_row(self, mock_db, device_ref):
        prior = VerificationLogFactory.create(id=42, technician_id=5, device_id=device_ref.device_id, verified_at=T0)

        with patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=TechnicianFactory.create(id=5))), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=prior)), \
             patch.object(VerificationLogRepository, "insert_verification", AsyncMock(side_effect=_insert)):
            result = await VerificationRecorder.record_verification(
                mock_db, 5, device_ref, now=T0 + timedelta(hours=5)
            )

        assert result.created is True
        assert result.verification_id == 900
        assert result.log.verified_at == T0 + timedelta(hours=5)

    @pytest.mark.asyncio
    async def test_payload_fields_copied(self, mock_db, device_ref):
        payload = VerificationPayload(
            verification_status="Installed",
            notes="Mounted under dashboard",
            gps_data=GpsData(latitude=30.04, longitude=31.23, gps_time=T0 - timedelta(minutes=2)),
        )

        with patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=TechnicianFactory.create(id=5))), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=None)), \
             patch.object(VerificationLogRepository, "insert_verification", AsyncMock(side_effect=_insert)):
            result = await VerificationRecorder.record_verification(mock_db, 5, device_ref, payload=payload, now=T0)

        assert result.log.verification_status == "Installed"
        assert result.log.notes == "Mounted under dashboard"
        assert result.log.latitude == 30.04
        assert result.log.longitude == 31.23
        assert result.log.gps_time == T0 - timedelta(minutes=2)
