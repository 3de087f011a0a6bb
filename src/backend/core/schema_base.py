"""
Base schema model for service DTOs.

DTOs serialize with camelCase aliases for the single-page frontend,
accept both snake_case and camelCase input, build from ORM rows, and
emit datetimes as UTC ISO 8601 strings with a 'Z' suffix.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_serializer


def to_camel(string: str) -> str:
    """
    Convert snake_case to camelCase.

    Example:
        >>> to_camel("verified_at")
        'verifiedAt'
    """
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


def serialize_datetime(dt: datetime | None) -> str | None:
    """
    Serialize a datetime as ISO 8601 with a 'Z' suffix.

    Stored datetimes are naive UTC; aware values are converted to UTC first.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)

    return dt.isoformat() + "Z"


class CamelSchemaModel(BaseModel):
    """
    Base model for all DTO schemas.

    All schema models should inherit from this class instead of BaseModel.
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_serializer("*", mode="wrap")
    @classmethod
    def serialize_any_datetime(cls, value: Any, handler: Any) -> Any:
        """Serialize datetime fields with the UTC indicator, delegate the rest."""
        if isinstance(value, datetime):
            return serialize_datetime(value)
        return handler(value)
