"""Lock protocol on an object store that has no compare-and-swap.

Acquisition is read-then-write and therefore not atomic. A failed write
after a clean read may still have landed, so it is reported as grabbed
together with the error.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from stepgate.core.exceptions import LockError, LockExistsError, ObjectNotFoundError, ObjectStoreError
from stepgate.core.protocols import IObjectStore
from stepgate.core.types import LockOutcome
from stepgate.models.lock import LockRecord, UserLockRecord

logger = logging.getLogger(__name__)


class ObjectStoreLocker:
    """ILocker over an IObjectStore; ``namespace`` is the bucket."""

    def __init__(self, store: IObjectStore) -> None:
        self._store = store

    def _read_record(self, bucket: str, lock_path: str) -> LockRecord | None:
        try:
            body = self._store.read(bucket, lock_path)
        except ObjectNotFoundError:
            return None
        return LockRecord.model_validate_json(body)

    def grab_lock(self, namespace: str, lock_path: str, holder_id: str,
                  reason: str = "") -> LockOutcome:
        try:
            record = self._read_record(namespace, lock_path)
        except (ObjectStoreError, PydanticValidationError) as exc:
            return LockOutcome(grabbed=False, error=exc)

        if record is not None and record.uuid != holder_id:
            logger.warning("Lock %s/%s held by %s", namespace, lock_path, record.uuid)
            return LockOutcome(grabbed=False)

        body = LockRecord(uuid=holder_id).model_dump_json().encode("utf-8")
        try:
            self._store.write(namespace, lock_path, body, content_type="application/json")
        except ObjectStoreError as exc:
            return LockOutcome(grabbed=True, error=exc)

        logger.info("Grabbed lock %s/%s for %s", namespace, lock_path, holder_id)
        return LockOutcome(grabbed=True)

    def release_lock(self, namespace: str, lock_path: str, holder_id: str) -> None:
        try:
            record = self._read_record(namespace, lock_path)
        except (ObjectStoreError, PydanticValidationError) as exc:
            raise LockError(f"Unable to read lock {namespace}/{lock_path}: {exc}") from exc

        if record is None:
            return
        if record.uuid != holder_id:
            raise LockError(
                f"Lock {namespace}/{lock_path} is held by {record.uuid!r}, not {holder_id!r}"
            )

        try:
            self._store.delete(namespace, lock_path)
        except ObjectStoreError as exc:
            raise LockError(f"Unable to delete lock {namespace}/{lock_path}: {exc}") from exc
        logger.info("Released lock %s/%s for %s", namespace, lock_path, holder_id)

    def check_user_lock(self, namespace: str, lock_path: str) -> None:
        """Raise LockExistsError if any user lock record exists at ``lock_path``."""
        try:
            body = self._store.read(namespace, lock_path)
        except ObjectNotFoundError:
            return
        except ObjectStoreError as exc:
            raise LockExistsError(f"CheckUserLock error: {exc}") from exc

        try:
            record = UserLockRecord.model_validate_json(body)
        except PydanticValidationError:
            record = UserLockRecord()
        raise LockExistsError(
            f"CheckUserLock error: user lock at {namespace}/{lock_path} "
            f"held by {record.user or 'unknown'!r}: {record.lock_reason or 'no reason given'}"
        )

    def clear_hint(self, namespace: str, lock_path: str) -> str:
        return f"aws s3 rm s3://{namespace}/{lock_path}"
