"""
Base models shared by the account tables
"""
import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlmodel import SQLModel, Field

from bid_accounts.core.security import utcnow


def new_id() -> str:
    return uuid.uuid4().hex


class UTCDateTime(sa.types.TypeDecorator):
    """
    Timezone-aware UTC datetimes on every backend

    Backends without a timezone type (SQLite) hand values back naive; those
    are read as UTC so that comparisons against ``utcnow()`` stay valid.
    """
    impl = sa.DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BaseModel(SQLModel):
    """Base model with an opaque string primary key"""
    id: str = Field(default_factory=new_id, primary_key=True, max_length=32)


class TimestampMixin(SQLModel):
    """Creation and last-update timestamps maintained by the store"""
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCDateTime(), nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime(), nullable=False)


class BaseModelWithTimestamp(BaseModel, TimestampMixin):
    pass
