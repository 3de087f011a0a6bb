"""
Unit tests for the IMEI workflow service.

Tests:
- Caller resolution from stored role names
- Denials are audited and returned as results
- Daily verification limit
- Verification messages and audit on new rows only
- History date defaults
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import NotFoundError, ValidationError
from db.enums import AuditAction, CallerRole
from repositories.technician_repository import TechnicianRepository
from repositories.user_repository import UserRepository
from repositories.verification_log_repository import VerificationLogRepository
from schemas.imei import AccessResult, Caller, DeviceData, VerificationHistoryFilter, VerificationRequest
from services.access_resolver import AccessResolver
from services.audit_service import AuditService
from services.device_directory import DeviceDirectoryClient
from services.imei_service import DAILY_LIMIT_MESSAGE, DEVICE_DATA_UNAVAILABLE_MESSAGE, ImeiService
from services.verification_recorder import RecordResult, VerificationRecorder
from tests.factories import VALID_IMEI, TechnicianFactory, UserFactory, VerificationLogFactory

NOW = datetime(2024, 6, 1, 12, 0, 0)


class TestResolveCaller:
    """Tests for building the caller context."""

    @pytest.mark.asyncio
    async def test_unknown_user_raises(self, mock_db):
        with patch.object(UserRepository, "find_by_id", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await ImeiService.resolve_caller(mock_db, 99)

    @pytest.mark.asyncio
    async def test_reseller_admin_with_technician_record(self, mock_db):
        user = UserFactory.create(id=20, reseller_id=3)
        technician = TechnicianFactory.create(id=8, user_id=20)

        with patch.object(UserRepository, "find_by_id", AsyncMock(return_value=user)), \
             patch.object(UserRepository, "get_role_names", AsyncMock(return_value=["Reseller  Admin"])), \
             patch.object(TechnicianRepository, "find_by_user_id", AsyncMock(return_value=technician)):
            caller = await ImeiService.resolve_caller(mock_db, 20)

        assert caller.role is CallerRole.RESELLER_ADMIN
        assert caller.reseller_id == 3
        assert caller.technician_id == 8
        assert caller.username == user.username


class TestCheckAccess:
    """Tests for the access check workflow."""

    @pytest.mark.asyncio
    async def test_unknown_device_raises_and_rolls_back(self, mock_db, technician_caller):
        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await ImeiService.check_access(mock_db, technician_caller, VALID_IMEI)

        mock_db.rollback.assert_awaited()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_denial_is_audited(self, mock_db, device_ref, technician_caller):
        denial = AccessResult(has_access=False, restriction_reason="Blocked", device_id=device_ref.device_id)
        audit = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=denial)), \
             patch.object(AuditService, "log", audit):
            result = await ImeiService.check_access(mock_db, technician_caller, VALID_IMEI, NOW)

        assert result.has_access is False
        assert result.restriction_reason == "Blocked"
        audit.assert_awaited_once()
        assert audit.await_args.args[1] is AuditAction.IMEI_ACCESS_DENIED
        assert audit.await_args.args[2] == "Device"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_allowed_check_is_not_audited(self, mock_db, device_ref, technician_caller):
        allowed = AccessResult(has_access=True, device_id=device_ref.device_id)
        audit = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=allowed)), \
             patch.object(AuditService, "log", audit):
            result = await ImeiService.check_access(mock_db, technician_caller, VALID_IMEI, NOW)

        assert result.has_access is True
        audit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_technician_role_without_record_raises(self, mock_db, device_ref):
        caller = Caller(user_id=10, role=CallerRole.TECHNICIAN)

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)):
            with pytest.raises(NotFoundError):
                await ImeiService.check_access(mock_db, caller, VALID_IMEI, NOW)

    @pytest.mark.asyncio
    async def test_admin_uses_admin_path(self, mock_db, device_ref, reseller_admin_caller):
        admin_check = AsyncMock(return_value=AccessResult(has_access=True, device_id=device_ref.device_id))

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_admin_access", admin_check):
            result = await ImeiService.check_access(mock_db, reseller_admin_caller, VALID_IMEI, NOW)

        assert result.has_access is True
        admin_check.assert_awaited_once()


class TestGetDeviceData:
    """Tests for fetching live device data."""

    @pytest.mark.asyncio
    async def test_denied_returns_reason_without_fetch(self, mock_db, device_ref, technician_caller):
        denial = AccessResult(has_access=False, restriction_reason="Blocked", device_id=device_ref.device_id)
        fetch = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=denial)), \
             patch.object(DeviceDirectoryClient, "get_device_data", fetch), \
             patch.object(AuditService, "log", AsyncMock()):
            result = await ImeiService.get_device_data(mock_db, technician_caller, VALID_IMEI, NOW)

        assert result.success is False
        assert result.message == "Blocked"
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_allowed_returns_data_and_audits(self, mock_db, device_ref, technician_caller):
        data = DeviceData(device_id=device_ref.device_id, imei=VALID_IMEI, is_online=True)
        audit = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=AccessResult(has_access=True))), \
             patch.object(DeviceDirectoryClient, "get_device_data", AsyncMock(return_value=data)), \
             patch.object(AuditService, "log", audit):
            result = await ImeiService.get_device_data(mock_db, technician_caller, VALID_IMEI, NOW)

        assert result.success is True
        assert result.data == data
        assert audit.await_args.args[1] is AuditAction.IMEI_ACCESS

    @pytest.mark.asyncio
    async def test_missing_data_is_unsuccessful(self, mock_db, device_ref, technician_caller):
        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=AccessResult(has_access=True))), \
             patch.object(DeviceDirectoryClient, "get_device_data", AsyncMock(return_value=None)):
            result = await ImeiService.get_device_data(mock_db, technician_caller, VALID_IMEI, NOW)

        assert result.success is False
        assert result.message == DEVICE_DATA_UNAVAILABLE_MESSAGE


class TestVerifyDevice:
    """Tests for the verification workflow."""

    @pytest.mark.asyncio
    async def test_admin_without_technician_record_raises(self, mock_db, reseller_admin_caller):
        with pytest.raises(ValidationError):
            await ImeiService.verify_device(mock_db, reseller_admin_caller, VerificationRequest(imei=VALID_IMEI))

    @pytest.mark.asyncio
    async def test_denied_does_not_record(self, mock_db, device_ref, technician_caller):
        denial = AccessResult(has_access=False, restriction_reason="Blocked", device_id=device_ref.device_id)
        record = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=denial)), \
             patch.object(AuditService, "log", AsyncMock()), \
             patch.object(VerificationRecorder, "record_verification", record):
            result = await ImeiService.verify_device(
                mock_db, technician_caller, VerificationRequest(imei=VALID_IMEI), NOW
            )

        assert result.success is False
        assert result.message == "Blocked"
        record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_daily_limit_blocks_new_rows(self, mock_db, device_ref, technician_caller):
        technician = TechnicianFactory.create(id=5, daily_limit=3)
        record = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=AccessResult(has_access=True))), \
             patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=technician)), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=None)), \
             patch.object(VerificationLogRepository, "count_for_day", AsyncMock(return_value=3)), \
             patch.object(VerificationRecorder, "record_verification", record):
            result = await ImeiService.verify_device(
                mock_db, technician_caller, VerificationRequest(imei=VALID_IMEI), NOW
            )

        assert result.success is False
        assert result.message == DAILY_LIMIT_MESSAGE
        record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_daily_limit_does_not_block_reuse(self, mock_db, device_ref, technician_caller):
        technician = TechnicianFactory.create(id=5, daily_limit=3)
        prior = VerificationLogFactory.create(id=42, technician_id=5, verified_at=NOW - timedelta(hours=1))
        count = AsyncMock(return_value=3)
        record = AsyncMock(return_value=RecordResult(verification_id=42, created=False, log=prior))
        audit = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=AccessResult(has_access=True))), \
             patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=technician)), \
             patch.object(VerificationLogRepository, "find_last_verification", AsyncMock(return_value=prior)), \
             patch.object(VerificationLogRepository, "count_for_day", count), \
             patch.object(VerificationRecorder, "record_verification", record), \
             patch.object(AuditService, "log", audit):
            result = await ImeiService.verify_device(
                mock_db, technician_caller, VerificationRequest(imei=VALID_IMEI), NOW
            )

        assert result.success is True
        assert result.created is False
        assert result.verification_id == 42
        assert "already verified" in result.message
        count.assert_not_awaited()
        audit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_row_is_audited(self, mock_db, device_ref, technician_caller):
        technician = TechnicianFactory.create(id=5)
        log = VerificationLogFactory.create(id=77, technician_id=5, verified_at=NOW)
        audit = AsyncMock()

        with patch.object(DeviceDirectoryClient, "resolve_device", AsyncMock(return_value=device_ref)), \
             patch.object(AccessResolver, "check_access", AsyncMock(return_value=AccessResult(has_access=True))), \
             patch.object(TechnicianRepository, "find_by_id", AsyncMock(return_value=technician)), \
             patch.object(
                 VerificationRecorder,
                 "record_verification",
                 AsyncMock(return_value=RecordResult(verification_id=77, created=True, log=log)),
             ), \
             patch.object(AuditService, "log", audit):
            result = await ImeiService.verify_device(
                mock_db, technician_caller, VerificationRequest(imei=VALID_IMEI), NOW
            )

        assert result.success is True
        assert result.created is True
        assert result.verification_id == 77
        assert result.message == "Verification recorded"
        assert audit.await_args.args[1] is AuditAction.IMEI_VERIFICATION
        mock_db.commit.assert_awaited_once()


class TestVerificationHistory:
    """Tests for history date defaults."""

    @pytest.mark.asyncio
    async def test_dates_default_to_current_day(self, mock_db):
        search = AsyncMock(return_value=([], 0))

        with patch.object(VerificationLogRepository, "search", search):
            page = await ImeiService.get_verification_history(mock_db, 5, VerificationHistoryFilter(), NOW)

        kwargs = search.await_args.kwargs
        assert kwargs["technician_id"] == 5
        assert kwargs["from_date"] == datetime(2024, 6, 1)
        assert kwargs["to_date"].date() == datetime(2024, 6, 1).date()
        assert kwargs["to_date"] > datetime(2024, 6, 1, 23, 59, 59)
        assert page.total_count == 0
        assert page.items == []
