"""
Domain exceptions raised by the service layer.

Access denial is not raised; it is returned as AccessResult(has_access=False).
"""

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for domain rule violations."""

    pass


class NotFoundError(DomainError):
    """Raised when a referenced technician, device, tag or record does not exist."""

    def __init__(self, entity: str, identifier: Any = None, message: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        if message is None:
            message = (
                f"{entity} not found"
                if identifier is None
                else f"{entity} with ID {identifier} not found"
            )
        super().__init__(message)


class ValidationError(DomainError):
    """Raised when a required identifier is missing or input breaks an invariant."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)
