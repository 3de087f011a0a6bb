"""
Device Directory Client - resolves IMEIs and device ids against the external GPS platform.

The directory owns devices; this console only references them by id.

Endpoints:
- GET /devices/{device_id}      device by internal id
- GET /devices?imei={imei}      devices matching an IMEI
- GET /devices/{imei}/data      live data (GPS snapshot, vehicle)

A 404 or an empty match means the device cannot be resolved. Transport
errors and other HTTP errors propagate to the caller.
"""

import logging
from typing import Any, List, Optional, Union

import httpx

from core.config import settings
from core.exceptions import ValidationError
from schemas.imei import DeviceData, DeviceRef

logger = logging.getLogger(__name__)

IMEI_LENGTH = 15
MIN_IMEI_LENGTH = 5
_SEPARATORS = (" ", "-", ".", "/")


def normalize_imei(value: str) -> str:
    """Strip whitespace and common separators from an IMEI or device id."""
    normalized = value.strip()
    for separator in _SEPARATORS:
        normalized = normalized.replace(separator, "")
    return normalized


def luhn_is_valid(digits: str) -> bool:
    """Check the Luhn check digit of a digit string."""
    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


class DeviceDirectoryClient:
    """HTTP client for the external device directory."""

    _client: Optional[httpx.AsyncClient] = None

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        """
        Get or create the async HTTP client.

        Uses connection pooling for efficiency.
        """
        if cls._client is None or cls._client.is_closed:
            headers = {"Accept": "application/json"}
            if settings.device_directory.api_key:
                headers["X-Api-Key"] = settings.device_directory.api_key

            cls._client = httpx.AsyncClient(
                base_url=settings.device_directory.base_url,
                timeout=httpx.Timeout(settings.device_directory.timeout_seconds),
                headers=headers,
                limits=httpx.Limits(
                    max_connections=50,
                    max_keepalive_connections=10,
                ),
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close all connections (call during shutdown)."""
        if cls._client is not None and not cls._client.is_closed:
            await cls._client.aclose()
        cls._client = None

    @classmethod
    async def _get_json(cls, path: str, params: Optional[dict] = None) -> Optional[Any]:
        client = await cls.get_client()
        response = await client.get(path, params=params)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _items(payload: Any) -> List[dict]:
        if payload is None:
            return []
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get("items")
            if isinstance(items, list):
                return items
            return [payload]
        return []

    @classmethod
    async def _resolve_by_id(cls, value: str) -> Optional[DeviceRef]:
        items = cls._items(await cls._get_json(f"/devices/{int(value)}"))
        if not items:
            return None
        return DeviceRef.model_validate(items[0])

    @classmethod
    async def _resolve_by_imei(cls, value: str) -> Optional[DeviceRef]:
        payload = await cls._get_json("/devices", params={"imei": value})
        for item in cls._items(payload):
            device = DeviceRef.model_validate(item)
            if device.imei is None:
                return device.model_copy(update={"imei": value})
            if normalize_imei(device.imei) == value:
                return device
        return None

    @classmethod
    async def resolve_device(cls, imei_or_id: Union[str, int]) -> Optional[DeviceRef]:
        """
        Resolve an IMEI or internal device id to a device reference.

        Values of MIN_IMEI_LENGTH digits or more are looked up by IMEI first;
        the directory decides whether it knows them. Shorter values, and
        values under IMEI_LENGTH the directory has no IMEI match for, are
        looked up as internal device ids.

        Args:
            imei_or_id: IMEI or all-digit internal device id

        Returns:
            DeviceRef, or None when the directory does not know the device

        Raises:
            ValidationError: Input is empty or not all digits
            httpx.HTTPError: Directory unreachable or failing
        """
        value = normalize_imei(str(imei_or_id))
        if not value or not value.isdigit():
            raise ValidationError(f"'{imei_or_id}' is not a valid IMEI or device ID", field="imei")

        if len(value) >= MIN_IMEI_LENGTH:
            if len(value) == IMEI_LENGTH and not luhn_is_valid(value):
                logger.warning(f"IMEI {value} fails the Luhn check digit, looking it up anyway")

            device = await cls._resolve_by_imei(value)
            if device is not None:
                return device
            if len(value) >= IMEI_LENGTH:
                logger.info(f"IMEI {value} not found in device directory")
                return None

        device = await cls._resolve_by_id(value)
        if device is None:
            logger.info(f"Device {value} not found in device directory")
        return device

    @classmethod
    async def get_device_data(cls, imei: str) -> Optional[DeviceData]:
        """
        Fetch live data for a device.

        Returns:
            DeviceData, or None when the directory has no data for the IMEI
        """
        value = normalize_imei(imei)
        payload = await cls._get_json(f"/devices/{value}/data")
        if not payload:
            return None
        return DeviceData.model_validate(payload)
