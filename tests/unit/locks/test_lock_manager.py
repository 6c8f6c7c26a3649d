"""Tests for LockManager's three-tier acquisition and the grab() translation."""

from __future__ import annotations

import pytest

from stepgate.core.exceptions import LockError, LockExistsError, ValidationError
from stepgate.core.types import LockOutcome
from stepgate.locks.manager import LockManager, grab
from stepgate.models.release import Release
from tests.fakes import MemoryLocker, MemoryObjectStore

TABLE = "locks"


@pytest.fixture
def release():
    return Release(
        aws_account_id="000000000000",
        aws_region="us-east-1",
        uuid="release-uuid-1",
        release_id="release-1",
        project_name="project",
        config_name="development",
        bucket="bucket",
    )


@pytest.fixture
def store():
    return MemoryObjectStore()


@pytest.fixture
def locker():
    return MemoryLocker()


@pytest.fixture
def manager(store, locker):
    return LockManager(store, locker, TABLE)


class _StubLocker:
    def __init__(self, outcome: LockOutcome) -> None:
        self.outcome = outcome

    def grab_lock(self, namespace, lock_path, holder_id, reason=""):
        return self.outcome

    def release_lock(self, namespace, lock_path, holder_id):
        pass

    def clear_hint(self, namespace, lock_path):
        return f"rm {namespace}/{lock_path}"


class TestGrab:
    def test_clean_grab(self):
        grab(_StubLocker(LockOutcome(grabbed=True)), "ns", "p", "id")

    def test_contention_carries_clear_hint(self):
        with pytest.raises(LockExistsError, match="rm ns/p"):
            grab(_StubLocker(LockOutcome(grabbed=False)), "ns", "p", "id")

    def test_error_before_write_is_lock_exists(self):
        with pytest.raises(LockExistsError, match="boom"):
            grab(_StubLocker(LockOutcome(grabbed=False, error=RuntimeError("boom"))), "ns", "p", "id")

    def test_ambiguous_is_lock_error(self):
        with pytest.raises(LockError, match="boom"):
            grab(_StubLocker(LockOutcome(grabbed=True, error=RuntimeError("boom"))), "ns", "p", "id")


class TestGrabLocks:
    def test_grabs_release_and_root_lock(self, manager, store, locker, release):
        manager.grab_locks(release)
        assert store.exists("bucket", release.release_lock_path())
        assert locker.holder(TABLE, release.root_lock_path()) == "release-uuid-1"

    def test_user_lock_stops_before_any_write(self, manager, store, locker, release):
        store.put("bucket", release.user_lock_path(), '{"user": "ops", "lock_reason": "freeze"}')
        with pytest.raises(LockExistsError):
            manager.grab_locks(release)
        assert store.writes == []
        assert locker.holder(TABLE, release.root_lock_path()) is None

    def test_release_lock_contention_has_s3_hint(self, manager, store, release):
        store.put("bucket", release.release_lock_path(), '{"uuid": "other"}')
        with pytest.raises(LockExistsError, match="aws s3 rm s3://bucket/"):
            manager.grab_locks(release)

    def test_root_lock_contention(self, manager, locker, release):
        locker.grab_lock(TABLE, release.root_lock_path(), "other")
        with pytest.raises(LockExistsError):
            manager.grab_locks(release)
        assert locker.holder(TABLE, release.root_lock_path()) == "other"

    def test_ambiguous_root_lock(self, manager, locker, release):
        locker.fail_grab(release.root_lock_path())
        with pytest.raises(LockError):
            manager.grab_locks(release)

    def test_requires_server_uuid(self, manager, release):
        release.uuid = None
        with pytest.raises(ValidationError):
            manager.grab_release_lock(release)


class TestUnlock:
    def test_unlock_root(self, manager, locker, release):
        manager.grab_root_lock(release)
        manager.unlock_root(release)
        assert locker.holder(TABLE, release.root_lock_path()) is None

    def test_unlock_root_held_by_other_fails(self, manager, locker, release):
        locker.grab_lock(TABLE, release.root_lock_path(), "other")
        with pytest.raises(LockError):
            manager.unlock_root(release)

    def test_release_release_lock(self, manager, store, release):
        manager.grab_release_lock(release)
        manager.release_release_lock(release)
        assert not store.exists("bucket", release.release_lock_path())
