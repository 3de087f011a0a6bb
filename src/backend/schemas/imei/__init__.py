"""IMEI workflow schemas package."""
from .imei import (
    AccessResult,
    Caller,
    DeviceData,
    DeviceDataResult,
    DeviceRef,
    GpsData,
    VehicleInfo,
    VerificationHistoryFilter,
    VerificationHistoryItem,
    VerificationPayload,
    VerificationRequest,
    VerificationResult,
)

__all__ = [
    "AccessResult",
    "Caller",
    "DeviceData",
    "DeviceDataResult",
    "DeviceRef",
    "GpsData",
    "VehicleInfo",
    "VerificationHistoryFilter",
    "VerificationHistoryItem",
    "VerificationPayload",
    "VerificationRequest",
    "VerificationResult",
]
