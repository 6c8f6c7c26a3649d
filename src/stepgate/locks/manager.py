"""Three-tier lock acquisition for a release: user lock, release lock, root lock."""

from __future__ import annotations

import logging

from stepgate.core.exceptions import LockError, LockExistsError, ValidationError
from stepgate.core.protocols import ILocker, IObjectStore
from stepgate.locks.object_lock import ObjectStoreLocker
from stepgate.models.release import Release

logger = logging.getLogger(__name__)


def _holder_id(release: Release) -> str:
    if not release.uuid:
        raise ValidationError("UUID must be set by server")
    return release.uuid


def grab(locker: ILocker, namespace: str, lock_path: str, holder_id: str) -> None:
    """Grab a lock, translating the outcome into the lock error taxonomy.

    Raises:
        LockExistsError: not grabbed; nothing was written.
        LockError: maybe grabbed; the caller must try to release.
    """
    outcome = locker.grab_lock(namespace, lock_path, holder_id)

    # not-grabbed is checked first: some errors happen before anything is written
    if not outcome.grabbed:
        if outcome.error is not None:
            raise LockExistsError(str(outcome.error)) from outcome.error
        raise LockExistsError(
            f"Lock Already Exists at {namespace}:{lock_path}\n"
            f"Run the following to clear it: {locker.clear_hint(namespace, lock_path)}"
        )

    if outcome.error is not None:
        raise LockError(str(outcome.error)) from outcome.error


class LockManager:
    """Acquires and releases every lock a release needs.

    The release lock lives in the object store next to the release; the
    root lock lives in the keyed store (``lock_table``) and serializes all
    releases of one project config.
    """

    def __init__(self, store: IObjectStore, locker: ILocker, lock_table: str) -> None:
        self._object_locker = ObjectStoreLocker(store)
        self._locker = locker
        self._lock_table = lock_table

    def grab_locks(self, release: Release) -> None:
        """Check the user lock, then grab the release lock, then the root lock."""
        self.check_user_lock(release)
        self.grab_release_lock(release)
        self.grab_root_lock(release)
        logger.info("Locks grabbed for release %s (%s)", release.release_id, release.uuid)

    def check_user_lock(self, release: Release) -> None:
        self._object_locker.check_user_lock(release.bucket, release.user_lock_path())

    def grab_release_lock(self, release: Release) -> None:
        grab(self._object_locker, release.bucket, release.release_lock_path(), _holder_id(release))

    def grab_root_lock(self, release: Release) -> None:
        grab(self._locker, self._lock_table, release.root_lock_path(), _holder_id(release))

    def unlock_root(self, release: Release) -> None:
        self._locker.release_lock(self._lock_table, release.root_lock_path(), _holder_id(release))

    def release_release_lock(self, release: Release) -> None:
        self._object_locker.release_lock(release.bucket, release.release_lock_path(), _holder_id(release))
