"""Dict-backed object store and locker used by unit tests and local runs."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from stepgate.core.exceptions import LockError, ObjectNotFoundError, ObjectStoreError
from stepgate.core.types import LockOutcome, StoredObject
from stepgate.core.utils import utcnow


class MemoryObjectStore:
    """Dict-backed IObjectStore for unit tests.

    ``fail_read``, ``fail_write`` and ``fail_delete`` make every later call
    for that path raise, standing in for backend outages.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._objects: dict[tuple[str, str], StoredObject] = {}
        self._read_errors: dict[str, Exception] = {}
        self._write_errors: dict[str, Exception] = {}
        self._delete_errors: dict[str, Exception] = {}
        self.writes: list[str] = []
        self.deletes: list[str] = []

    def put(self, bucket: str, path: str, data: bytes | str,
            last_modified: datetime | None = None) -> None:
        """Seed an object directly, bypassing write error injection."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._objects[(bucket, path)] = StoredObject(body=data, last_modified=last_modified or self._clock())

    def exists(self, bucket: str, path: str) -> bool:
        return (bucket, path) in self._objects

    def fail_read(self, path: str, exc: Exception | None = None) -> None:
        self._read_errors[path] = exc or ObjectStoreError("", path, f"injected read failure for {path}")

    def fail_write(self, path: str, exc: Exception | None = None) -> None:
        self._write_errors[path] = exc or ObjectStoreError("", path, f"injected write failure for {path}")

    def fail_delete(self, path: str, exc: Exception | None = None) -> None:
        self._delete_errors[path] = exc or ObjectStoreError("", path, f"injected delete failure for {path}")

    def read(self, bucket: str, path: str) -> bytes:
        return self.read_object(bucket, path).body

    def read_object(self, bucket: str, path: str) -> StoredObject:
        if path in self._read_errors:
            raise self._read_errors[path]
        try:
            return self._objects[(bucket, path)]
        except KeyError:
            raise ObjectNotFoundError(bucket, path, f"object {bucket}/{path} not found") from None

    def write(self, bucket: str, path: str, data: bytes,
              content_type: str = "application/octet-stream") -> str:
        if path in self._write_errors:
            raise self._write_errors[path]
        self.writes.append(path)
        self._objects[(bucket, path)] = StoredObject(body=data, last_modified=self._clock())
        return path

    def delete(self, bucket: str, path: str) -> None:
        if path in self._delete_errors:
            raise self._delete_errors[path]
        self.deletes.append(path)
        self._objects.pop((bucket, path), None)


class MemoryLocker:
    """Dict-backed ILocker with the same conditional semantics as DynamoDB."""

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], str] = {}
        self._grab_errors: dict[str, Exception] = {}
        self.released: list[str] = []

    def fail_grab(self, lock_path: str, exc: Exception | None = None) -> None:
        """Make grabs of ``lock_path`` end with an unknown outcome."""
        self._grab_errors[lock_path] = exc or LockError(f"injected grab failure for {lock_path}")

    def holder(self, namespace: str, lock_path: str) -> str | None:
        return self._locks.get((namespace, lock_path))

    def grab_lock(self, namespace: str, lock_path: str, holder_id: str,
                  reason: str = "") -> LockOutcome:
        current = self._locks.get((namespace, lock_path))
        if current is not None and current != holder_id:
            return LockOutcome(grabbed=False)
        if lock_path in self._grab_errors:
            return LockOutcome(grabbed=True, error=self._grab_errors[lock_path])
        self._locks[(namespace, lock_path)] = holder_id
        return LockOutcome(grabbed=True)

    def release_lock(self, namespace: str, lock_path: str, holder_id: str) -> None:
        current = self._locks.get((namespace, lock_path))
        if current is None:
            return
        if current != holder_id:
            raise LockError(f"Lock {namespace}:{lock_path} is held by {current}, not {holder_id}")
        self.released.append(lock_path)
        del self._locks[(namespace, lock_path)]

    def clear_hint(self, namespace: str, lock_path: str) -> str:
        return f"delete {lock_path} from {namespace}"
