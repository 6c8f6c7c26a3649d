"""Task handlers for the deploy workflow, one per task state."""

from __future__ import annotations

import logging

from stepgate.core.config import AppSettings
from stepgate.core.protocols import IDeployTarget, ILocker, IObjectStore, TaskHandler
from stepgate.core.utils import sha256_model
from stepgate.locks.manager import LockManager
from stepgate.models.release import Release
from stepgate.workflow.handlers import release_task

logger = logging.getLogger(__name__)


def create_task_handlers(
    store: IObjectStore,
    locker: ILocker,
    target: IDeployTarget,
    settings: AppSettings | None = None,
    model: type[Release] = Release,
) -> dict[str, TaskHandler]:
    """Build the handler map keyed by deploy workflow state name."""
    if settings is None:
        settings = AppSettings()
    locks = LockManager(store, locker, settings.dynamodb.lock_table_name)

    @release_task(model=model)
    def validate(release: Release) -> None:
        # hash the request as received, before server-owned fields are reset
        release.release_sha256 = sha256_model(release)
        release.wipe_controlled_values()
        release.set_defaults(settings.deployer.region, settings.deployer.account_id,
                             settings.s3.bucket_prefix)
        release.validate_release(store, model)
        release.append_log(store, f"{release.execution_prefix()}{release.uuid} validated")

    @release_task(model=model)
    def lock(release: Release) -> None:
        locks.grab_locks(release)

    @release_task(model=model)
    def validate_resources(release: Release) -> None:
        release.check_halt(store)
        target.validate_resources(release)

    @release_task(model=model)
    def deploy(release: Release) -> None:
        release.check_halt(store)
        target.deploy(release)
        release.success = True
        locks.unlock_root(release)
        release.append_log(store, f"{release.execution_prefix()}{release.uuid} deployed")

    @release_task(model=model)
    def release_lock_failure(release: Release) -> None:
        locks.unlock_root(release)
        logger.warning("%s root lock released after failure: %s", release.error_prefix(), release.error)

    return {
        "Validate": validate,
        "Lock": lock,
        "ValidateResources": validate_resources,
        "Deploy": deploy,
        "ReleaseLockFailure": release_lock_failure,
    }
