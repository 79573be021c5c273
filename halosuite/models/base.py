"""Base model and utilities."""

from __future__ import annotations

import secrets
import threading
import time
from datetime import UTC, datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Crockford's base32 alphabet (no I, L, O, U)
CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

_TIME_CHARS = 10
_RANDOM_CHARS = 16
_RANDOM_BITS = 80

_lock = threading.Lock()
_last_ms = -1
_last_random = 0


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _encode(value: int, length: int) -> str:
    chars = []
    for _ in range(length):
        chars.append(CROCKFORD_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def generate_ulid() -> str:
    """Generate a ULID identifier.

    26 characters of Crockford base32: a 48-bit millisecond timestamp
    followed by 80 random bits. Within the same millisecond the random part
    is incremented, so ids from one process sort in creation order.

    Returns:
        A ULID string identifier.
    """
    global _last_ms, _last_random

    with _lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_ms:
            now_ms = _last_ms
            _last_random = (_last_random + 1) & ((1 << _RANDOM_BITS) - 1)
        else:
            _last_ms = now_ms
            _last_random = secrets.randbits(_RANDOM_BITS)
        random_part = _last_random

    return _encode(now_ms, _TIME_CHARS) + _encode(random_part, _RANDOM_CHARS)


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (SQLite drops tzinfo on read) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UlidPrimaryKey:
    """String primary key filled with a fresh ULID."""

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_ulid)


class CreatedAt:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class Timestamps(CreatedAt):
    """``created_at`` plus an ``updated_at`` refreshed on every ORM update."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
