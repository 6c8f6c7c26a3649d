"""Shared test doubles — re-export memory backends plus a recording deploy target."""

from __future__ import annotations

from stepgate.persistence.memory_backend import MemoryLocker, MemoryObjectStore


class RecordingTarget:
    """IDeployTarget that records calls and raises configured errors."""

    def __init__(self, validate_error: Exception | None = None,
                 deploy_error: Exception | None = None) -> None:
        self.validate_error = validate_error
        self.deploy_error = deploy_error
        self.validated: list[str] = []
        self.deployed: list[str] = []

    def validate_resources(self, release) -> None:
        self.validated.append(release.release_id)
        if self.validate_error is not None:
            raise self.validate_error

    def deploy(self, release) -> None:
        self.deployed.append(release.release_id)
        if self.deploy_error is not None:
            raise self.deploy_error


__all__ = ["MemoryLocker", "MemoryObjectStore", "RecordingTarget"]
