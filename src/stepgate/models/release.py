"""Release — the payload threaded through every deploy workflow step.

A client builds a Release, uploads it to ``release_path()`` and starts the
workflow with the same data. The server wipes the fields it controls, fills
defaults, and validates the request against the uploaded copy before any
lock is taken.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from stepgate.core.exceptions import (
    HaltError,
    ObjectNotFoundError,
    ObjectStoreError,
    ValidationError,
)
from stepgate.core.protocols import IObjectStore
from stepgate.core.utils import as_utc, sha256_model, time_uuid, utcnow, within_time_frame

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 600
MAX_TIMEOUT_SECONDS = 7 * 24 * 60 * 60

# Releases may be re-deployed (rolled back to) for 10 days.
CREATED_AT_MAX_AGE = timedelta(days=10)
CLOCK_SKEW = timedelta(minutes=2)
HALT_MAX_AGE = timedelta(minutes=5)


class ReleaseError(BaseModel):
    """Error kind and cause written by a workflow catch rule."""

    model_config = ConfigDict(populate_by_name=True)

    error: Optional[str] = Field(default=None, alias="Error")
    cause: Optional[str] = Field(default=None, alias="Cause")


class Release(BaseModel):
    """Identifying and progress data for one deployment attempt."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", validate_assignment=True)

    aws_account_id: Optional[str] = None
    aws_region: Optional[str] = None

    release_sha256: str = Field(default="", exclude=True)  # set by server, never serialized

    uuid: Optional[str] = None  # generated by server
    release_id: Optional[str] = None  # generated by client

    project_name: Optional[str] = None
    config_name: Optional[str] = None
    bucket: Optional[str] = None

    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None

    timeout: Optional[int] = Field(default=None, gt=0, le=MAX_TIMEOUT_SECONDS)  # seconds

    metadata: Optional[dict[str, str]] = None

    error: Optional[ReleaseError] = None
    success: Optional[bool] = None

    @field_validator("created_at", "started_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    # ---- Validation ----

    def validate_release(self, store: IObjectStore,
                         release_cls: type[Release] | None = None) -> Release:
        """Check required fields, the creation window and the uploaded release hash.

        Checks run in a fixed order and the first failure is raised as
        ``ValidationError``. Returns the uploaded release parsed as
        ``release_cls`` (defaults to this release's class).
        """
        required = (
            (self.aws_account_id, "AwsAccountID must be defined"),
            (self.aws_region, "AwsRegion must be defined"),
            (self.uuid, "UUID must be set by server"),
            (self.release_id, "ReleaseID must be defined"),
            (self.project_name, "ProjectName must be defined"),
            (self.config_name, "ConfigName must be defined"),
            (self.bucket, "Bucket must be defined"),
        )
        for value, message in required:
            if not value:
                raise ValidationError(message)

        if self.timeout is None:
            raise ValidationError("Timeout must be defined")
        if self.created_at is None:
            raise ValidationError("CreatedAt must be defined")
        if self.started_at is None:
            raise ValidationError("StartedAt must be defined")

        if not within_time_frame(self.created_at, CREATED_AT_MAX_AGE, CLOCK_SKEW):
            raise ValidationError("Created at older than 10 days (or in the future)")

        return self._validate_release_sha(store, release_cls or type(self))

    def _validate_release_sha(self, store: IObjectStore, release_cls: type[Release]) -> Release:
        try:
            uploaded = release_cls.model_validate_json(store.read(self.bucket, self.release_path()))
        except (ObjectStoreError, PydanticValidationError) as exc:
            raise ValidationError(f"Error Unmarshalling uploaded Release struct with {exc}") from exc

        expected = sha256_model(uploaded)
        if expected != self.release_sha256:
            raise ValidationError(f"Release SHA incorrect expected {expected}, got {self.release_sha256}")
        return uploaded

    # ---- Defaults ----

    def wipe_controlled_values(self) -> None:
        """Clear the fields only the server may set."""
        self.uuid = None
        self.started_at = None
        self.success = None

    def set_defaults(self, region: str | None, account: str | None, bucket_prefix: str) -> None:
        """Fill unset fields from the execution environment; never overwrite."""
        if not self.uuid:
            self.uuid = time_uuid("release-")
        if self.started_at is None:
            self.started_at = utcnow()
        if not self.aws_region:
            self.aws_region = region
        if not self.aws_account_id:
            self.aws_account_id = account
        # the default bucket lives in the executing account, not the release's
        if not self.bucket and account is not None:
            self.bucket = f"{bucket_prefix}{account}"
        if self.timeout is None:
            self.timeout = DEFAULT_TIMEOUT_SECONDS

    # ---- Paths ----

    def _require(self, value: str | None, name: str) -> str:
        if not value:
            raise ValidationError(f"{name} must be defined to derive paths")
        return value

    def project_dir(self) -> str:
        account = self._require(self.aws_account_id, "AwsAccountID")
        return f"{account}/{self._require(self.project_name, 'ProjectName')}"

    def root_dir(self) -> str:
        return f"{self.project_dir()}/{self._require(self.config_name, 'ConfigName')}"

    def release_dir(self) -> str:
        return f"{self.root_dir()}/{self._require(self.release_id, 'ReleaseID')}"

    def release_path(self) -> str:
        return f"{self.release_dir()}/release"

    def log_path(self) -> str:
        return f"{self.release_dir()}/log"

    def release_lock_path(self) -> str:
        return f"{self.release_dir()}/lock"

    def root_lock_path(self) -> str:
        return f"{self.root_dir()}/lock"

    def user_lock_path(self) -> str:
        return f"{self.root_dir()}/user-lock"

    def halt_path(self) -> str:
        return f"{self.root_dir()}/halt"

    def shared_project_dir(self) -> str:
        return f"{self.project_dir()}/_shared"

    # ---- Errors and naming ----

    def error_prefix(self) -> str:
        if self.release_id is None:
            return "Release Error:"
        return f"Release({self.release_id}) Error:"

    def execution_prefix(self) -> str:
        project = self._require(self.project_name, "ProjectName").replace("/", "-")
        return f"deploy-{project}-{self._require(self.config_name, 'ConfigName')}-"

    def execution_name(self) -> str:
        return time_uuid(self.execution_prefix())

    # ---- Timeout and halt ----

    def is_timed_out(self) -> bool:
        now = utcnow()
        if self.started_at is None:
            self.started_at = now
        timeout = self.timeout if self.timeout is not None else DEFAULT_TIMEOUT_SECONDS
        return now - self.started_at > timedelta(seconds=timeout)

    def halt_flag(self, store: IObjectStore) -> str | None:
        """Message of a fresh halt flag, or None.

        Flags older than 5 minutes (or more than 2 minutes in the future)
        are ignored, as is any read failure.
        """
        try:
            obj = store.read_object(self.bucket, self.halt_path())
        except ObjectNotFoundError:
            return None
        except ObjectStoreError as exc:
            logger.warning("%s halt flag unreadable, ignoring: %s", self.error_prefix(), exc)
            return None

        if not within_time_frame(obj.last_modified, HALT_MAX_AGE, CLOCK_SKEW):
            return None
        return obj.body.decode("utf-8", errors="replace")

    def is_halted(self, store: IObjectStore) -> bool:
        return self.halt_flag(store) is not None

    def check_halt(self, store: IObjectStore) -> None:
        """Raise HaltError if the release timed out or an operator halted it."""
        if self.is_timed_out():
            raise HaltError("Timeout: Halting Release")

        message = self.halt_flag(store)
        if message is not None:
            raise HaltError(message or "Halt File Found")

    def halt(self, store: IObjectStore, message: str = "") -> None:
        store.write(self.bucket, self.halt_path(), message.encode("utf-8"), content_type="text/plain")

    def remove_halt(self, store: IObjectStore) -> None:
        try:
            store.delete(self.bucket, self.halt_path())
        except ObjectStoreError as exc:
            logger.warning("RemoveHalt error ignored: %s", exc)

    # ---- Upload and log ----

    def upload(self, store: IObjectStore) -> str:
        """Write this release where ``validate_release`` will look for it."""
        body = self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        return store.write(self.bucket, self.release_path(), body, content_type="application/json")

    def write_log(self, store: IObjectStore, log: str) -> None:
        store.write(self.bucket, self.log_path(), log.encode("utf-8"), content_type="text/plain")

    def append_log(self, store: IObjectStore, log: str) -> None:
        """Read-append-overwrite the release log; last writer wins."""
        try:
            existing = store.read(self.bucket, self.log_path()).decode("utf-8", errors="replace")
        except ObjectNotFoundError:
            existing = ""
        self.write_log(store, f"{existing}\n{log}")
