"""Protocol interfaces for all Stepgate abstractions.

Backends, lockers and deploy targets are matched structurally, so the
in-memory fakes satisfy the same interfaces as the AWS backends.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from stepgate.core.types import LockOutcome, StoredObject


# ---------------------------------------------------------------------------
# Persistence: Object Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IObjectStore(Protocol):
    """S3-compatible object storage with not-found semantics.

    ``read`` and ``read_object`` raise ``ObjectNotFoundError`` for a missing
    key and ``ObjectStoreError`` for any other failure.
    """

    def read(self, bucket: str, path: str) -> bytes: ...

    def read_object(self, bucket: str, path: str) -> StoredObject: ...

    def write(self, bucket: str, path: str, data: bytes,
              content_type: str = "application/octet-stream") -> str: ...

    def delete(self, bucket: str, path: str) -> None: ...


# ---------------------------------------------------------------------------
# Locks
# ---------------------------------------------------------------------------

@runtime_checkable
class ILocker(Protocol):
    """Acquire and release a lock keyed by ``lock_path`` inside ``namespace``.

    ``namespace`` is a bucket for object-store locks and a table name for
    keyed-store locks.
    """

    def grab_lock(self, namespace: str, lock_path: str, holder_id: str,
                  reason: str = "") -> LockOutcome: ...

    def release_lock(self, namespace: str, lock_path: str, holder_id: str) -> None: ...

    def clear_hint(self, namespace: str, lock_path: str) -> str: ...


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

TaskHandler = Callable[[Any], Any]


@runtime_checkable
class IDeployTarget(Protocol):
    """Business logic the deploy workflow drives: check, then change resources."""

    def validate_resources(self, release: Any) -> None: ...

    def deploy(self, release: Any) -> None: ...
