"""Type aliases and small value types used across Stepgate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

JsonDict = dict[str, Any]
StateName = str
ErrorKindName = str
HolderId = str


@dataclass(frozen=True)
class StoredObject:
    """Body and metadata of an object read from the object store."""

    body: bytes
    last_modified: datetime | None = None


@dataclass(frozen=True)
class LockOutcome:
    """Result of a lock acquisition attempt.

    ``grabbed`` with an ``error`` means the write may or may not have landed:
    treat the lock as held and try to release it.
    """

    grabbed: bool
    error: Exception | None = None

    @property
    def ambiguous(self) -> bool:
        return self.grabbed and self.error is not None
