"""Lock acquisition protocol over an object store and a keyed store."""

from __future__ import annotations

from stepgate.locks.manager import LockManager
from stepgate.locks.object_lock import ObjectStoreLocker

__all__ = ["LockManager", "ObjectStoreLocker"]
