"""Base mixins for SQLModel tables."""

from datetime import datetime, timezone
import threading
import time
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_seq_lock = threading.Lock()
_last_seq = 0


def insertion_seq() -> int:
    """Tie-breaker for rows created within the same timestamp.

    Nanosecond wall clock, forced strictly increasing within the process so a
    clock step backwards never reorders rows inserted later.
    """
    global _last_seq
    with _seq_lock:
        _last_seq = max(time.time_ns(), _last_seq + 1)
        return _last_seq


class TimestampMixin(SQLModel):
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        index=True,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": _utcnow},
        sa_type=sa.DateTime(timezone=True),
    )


class UUIDMixin(SQLModel):
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        nullable=False,
    )
