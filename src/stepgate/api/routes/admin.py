"""Operator endpoints: halt a config's releases, set a user lock, read logs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from stepgate.api.dependencies import get_object_store
from stepgate.core.exceptions import ObjectNotFoundError, ObjectStoreError
from stepgate.core.protocols import IObjectStore
from stepgate.models.lock import UserLockRecord
from stepgate.models.release import Release

router = APIRouter(tags=["admin"])

CONFIG_PATH = "/{bucket}/{account_id}/{project}/{config}"


class HaltRequest(BaseModel):
    message: str = ""


def _release(bucket: str, account_id: str, project: str, config: str,
             release_id: str | None = None) -> Release:
    return Release(
        bucket=bucket,
        aws_account_id=account_id,
        project_name=project,
        config_name=config,
        release_id=release_id,
    )


def _store_failure(exc: ObjectStoreError) -> HTTPException:
    if isinstance(exc, ObjectNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


@router.put(CONFIG_PATH + "/halt")
def halt(bucket: str, account_id: str, project: str, config: str, body: HaltRequest,
         store: IObjectStore = Depends(get_object_store)) -> dict:
    """Ask in-flight releases of this config to stop at their next checkpoint."""
    release = _release(bucket, account_id, project, config)
    try:
        release.halt(store, body.message)
    except ObjectStoreError as exc:
        raise _store_failure(exc) from exc
    return {"status": "halted", "path": release.halt_path()}


@router.delete(CONFIG_PATH + "/halt")
def remove_halt(bucket: str, account_id: str, project: str, config: str,
                store: IObjectStore = Depends(get_object_store)) -> dict:
    release = _release(bucket, account_id, project, config)
    release.remove_halt(store)
    return {"status": "resumed", "path": release.halt_path()}


@router.put(CONFIG_PATH + "/user-lock")
def set_user_lock(bucket: str, account_id: str, project: str, config: str, body: UserLockRecord,
                  store: IObjectStore = Depends(get_object_store)) -> dict:
    """Block every automated release of this config until the lock is deleted."""
    if not body.user:
        raise HTTPException(status_code=422, detail="user is required")
    path = _release(bucket, account_id, project, config).user_lock_path()
    try:
        store.write(bucket, path, body.model_dump_json().encode("utf-8"), content_type="application/json")
    except ObjectStoreError as exc:
        raise _store_failure(exc) from exc
    return {"status": "locked", "path": path}


@router.get(CONFIG_PATH + "/user-lock")
def get_user_lock(bucket: str, account_id: str, project: str, config: str,
                  store: IObjectStore = Depends(get_object_store)) -> UserLockRecord:
    path = _release(bucket, account_id, project, config).user_lock_path()
    try:
        return UserLockRecord.model_validate_json(store.read(bucket, path))
    except ObjectStoreError as exc:
        raise _store_failure(exc) from exc


@router.delete(CONFIG_PATH + "/user-lock")
def delete_user_lock(bucket: str, account_id: str, project: str, config: str,
                     store: IObjectStore = Depends(get_object_store)) -> dict:
    path = _release(bucket, account_id, project, config).user_lock_path()
    try:
        store.delete(bucket, path)
    except ObjectStoreError as exc:
        raise _store_failure(exc) from exc
    return {"status": "unlocked", "path": path}


@router.get(CONFIG_PATH + "/{release_id}/log")
def get_log(bucket: str, account_id: str, project: str, config: str, release_id: str,
            store: IObjectStore = Depends(get_object_store)) -> dict:
    release = _release(bucket, account_id, project, config, release_id)
    try:
        log = store.read(bucket, release.log_path()).decode("utf-8", errors="replace")
    except ObjectStoreError as exc:
        raise _store_failure(exc) from exc
    return {"release_id": release_id, "log": log}
