"""
Unit tests for the device directory client.

HTTP calls go through httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest
import pytest_asyncio

from core.exceptions import ValidationError
from services.device_directory import DeviceDirectoryClient, luhn_is_valid, normalize_imei
from tests.factories import VALID_IMEI

NON_LUHN_IMEI = "123456789012345"


class TestImeiHelpers:
    """Tests for normalization and check digits."""

    def test_normalize_strips_separators(self):
        assert normalize_imei(" 49-015420-323751-8 ") == VALID_IMEI

    def test_luhn(self):
        assert luhn_is_valid(VALID_IMEI) is True
        assert luhn_is_valid("490154203237519") is False


@pytest_asyncio.fixture
async def directory():
    """Install a mock transport; yields the list of seen requests and a route table."""
    routes = {}
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = (request.url.path, request.url.params.get("imei"))
        if key not in routes:
            return httpx.Response(404)
        status, body = routes[key]
        return httpx.Response(status, json=body)

    DeviceDirectoryClient._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://directory.test/api",
    )
    yield routes, seen
    await DeviceDirectoryClient.close()


class TestResolveDevice:
    """Tests for IMEI / id resolution."""

    @pytest.mark.asyncio
    async def test_rejects_non_digit_input(self, directory):
        with pytest.raises(ValidationError):
            await DeviceDirectoryClient.resolve_device("not-an-imei")

    @pytest.mark.asyncio
    async def test_looks_up_imei_without_valid_check_digit(self, directory):
        routes, seen = directory
        routes[("/api/devices", NON_LUHN_IMEI)] = (200, [{"deviceId": 42, "imei": NON_LUHN_IMEI}])

        device = await DeviceDirectoryClient.resolve_device(NON_LUHN_IMEI)

        assert device.device_id == 42
        assert device.imei == NON_LUHN_IMEI
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_short_imei_is_looked_up_by_imei(self, directory):
        routes, seen = directory
        routes[("/api/devices", "8612345678")] = (200, {"items": [{"deviceId": 77, "imei": "8612345678"}]})

        device = await DeviceDirectoryClient.resolve_device("8612345678")

        assert device.device_id == 77
        assert [request.url.path for request in seen] == ["/api/devices"]

    @pytest.mark.asyncio
    async def test_short_value_without_imei_match_falls_back_to_device_id(self, directory):
        routes, seen = directory
        routes[("/api/devices", "100200")] = (200, {"items": []})
        routes[("/api/devices/100200", None)] = (200, {"deviceId": 100200, "imei": VALID_IMEI})

        device = await DeviceDirectoryClient.resolve_device("100200")

        assert device.device_id == 100200
        assert [request.url.path for request in seen] == ["/api/devices", "/api/devices/100200"]

    @pytest.mark.asyncio
    async def test_resolves_imei(self, directory):
        routes, seen = directory
        routes[("/api/devices", VALID_IMEI)] = (
            200,
            {"items": [{"deviceId": 1001, "imei": VALID_IMEI, "timeZone": "UTC", "server": "gps-1"}]},
        )

        device = await DeviceDirectoryClient.resolve_device(VALID_IMEI)

        assert device.device_id == 1001
        assert device.imei == VALID_IMEI
        assert device.time_zone == "UTC"
        assert seen[0].url.params["imei"] == VALID_IMEI

    @pytest.mark.asyncio
    async def test_resolves_short_input_as_device_id(self, directory):
        routes, _ = directory
        routes[("/api/devices/1001", None)] = (200, {"deviceId": 1001, "imei": VALID_IMEI})

        device = await DeviceDirectoryClient.resolve_device("1001")

        assert device.device_id == 1001

    @pytest.mark.asyncio
    async def test_unknown_imei_returns_none(self, directory):
        routes, _ = directory
        routes[("/api/devices", VALID_IMEI)] = (200, {"items": []})

        assert await DeviceDirectoryClient.resolve_device(VALID_IMEI) is None

    @pytest.mark.asyncio
    async def test_unknown_device_id_returns_none(self, directory):
        assert await DeviceDirectoryClient.resolve_device("1001") is None

    @pytest.mark.asyncio
    async def test_server_error_propagates(self, directory):
        routes, _ = directory
        routes[("/api/devices", VALID_IMEI)] = (503, {"error": "maintenance"})

        with pytest.raises(httpx.HTTPStatusError):
            await DeviceDirectoryClient.resolve_device(VALID_IMEI)


class TestGetDeviceData:
    """Tests for live data retrieval."""

    @pytest.mark.asyncio
    async def test_returns_parsed_data(self, directory):
        routes, _ = directory
        routes[(f"/api/devices/{VALID_IMEI}/data", None)] = (
            200,
            {
                "deviceId": 1001,
                "imei": VALID_IMEI,
                "isOnline": True,
                "lastGpsData": {"latitude": 30.04, "longitude": 31.23, "speed": 42.0},
                "vehicleInfo": {"plateNumber": "ABC 123"},
            },
        )

        data = await DeviceDirectoryClient.get_device_data(VALID_IMEI)

        assert data.is_online is True
        assert data.last_gps_data.speed == 42.0
        assert data.vehicle_info.plate_number == "ABC 123"

    @pytest.mark.asyncio
    async def test_missing_data_returns_none(self, directory):
        assert await DeviceDirectoryClient.get_device_data(VALID_IMEI) is None
