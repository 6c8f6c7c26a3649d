"""Time window, id and hashing helpers."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def within_time_frame(value: datetime | None, past: timedelta, future: timedelta,
                      now: datetime | None = None) -> bool:
    """True if ``value`` is after ``now - past`` and before ``now + future``."""
    if value is None:
        return False
    now = now or utcnow()
    value = as_utc(value)
    return now - past < value < now + future


def time_uuid(prefix: str = "") -> str:
    """Unique id that sorts by creation time."""
    stamp = utcnow().strftime("%Y%m%dT%H%M%S%fZ")
    return f"{prefix}{stamp}-{uuid.uuid4().hex[:12]}"


def sha256_model(model: BaseModel) -> str:
    """Hex SHA-256 of the model's canonical JSON form."""
    raw = model.model_dump_json(by_alias=True, exclude_none=True)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
