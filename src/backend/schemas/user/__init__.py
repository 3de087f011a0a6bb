"""User schemas package."""
from .user import (
    PasswordChange,
    PasswordReset,
    UserCreate,
    UserFilter,
    UserRead,
    UserUpdate,
)

__all__ = [
    "PasswordChange",
    "PasswordReset",
    "UserCreate",
    "UserFilter",
    "UserRead",
    "UserUpdate",
]
