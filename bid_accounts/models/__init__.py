"""
SQLModel tables for the accounts API
"""

from .base import (
    BaseModel,
    TimestampMixin,
    BaseModelWithTimestamp
)

from .account import (
    Account,
    FULL_NAME_MIN_LENGTH,
    FULL_NAME_MAX_LENGTH
)

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "BaseModelWithTimestamp",
    "Account",
    "FULL_NAME_MIN_LENGTH",
    "FULL_NAME_MAX_LENGTH",
]
