from datetime import datetime
from typing import Optional

from sqlmodel import Field

from .base import BaseModelWithTimestamp, UTCDateTime

FULL_NAME_MIN_LENGTH = 2
FULL_NAME_MAX_LENGTH = 50


class Account(BaseModelWithTimestamp, table=True):
    """A registered user with credentials and email verification state"""
    __tablename__ = "accounts"

    full_name: str = Field(max_length=FULL_NAME_MAX_LENGTH)
    email: str = Field(max_length=254, unique=True, index=True)
    role: str
    password_hash: str = Field(max_length=128)

    is_email_verified: bool = Field(default=False)
    # Token and expiry are always set and cleared together
    verification_token: Optional[str] = Field(default=None, max_length=64, index=True)
    verification_expires_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime())

    def set_verification(self, token: str, expires_at: datetime) -> None:
        self.verification_token = token
        self.verification_expires_at = expires_at

    def clear_verification(self) -> None:
        self.verification_token = None
        self.verification_expires_at = None

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Account {self.id} {self.email}>"
