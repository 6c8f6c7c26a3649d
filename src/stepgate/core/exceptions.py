"""Stepgate exception hierarchy.

Every error exposes an ``error_kind`` string. Workflow retry and catch rules
match on that value, never on the Python class.
"""

from __future__ import annotations


class StepGateError(Exception):
    """Base exception for all Stepgate errors."""

    @property
    def error_kind(self) -> str:
        return type(self).__name__


class ValidationError(StepGateError):
    """Release payload or uploaded release hash is invalid."""


class LockExistsError(StepGateError):
    """A lock is held by someone else. Nothing was mutated."""


class LockError(StepGateError):
    """A lock mutation had an unknown outcome; the caller must try to release."""


class HaltError(StepGateError):
    """A release was halted by an operator or ran past its timeout."""


class DeployError(StepGateError):
    """Deploying a release failed before any resource was changed."""


class ParseError(StepGateError):
    """Workflow definition is malformed or references unknown states."""


class ResultPathError(StepGateError):
    """A catch rule's ResultPath cannot be written into the payload."""


class UnboundStateError(StepGateError):
    """A task state has no registered handler."""

    def __init__(self, state_name: str, message: str | None = None) -> None:
        self.state_name = state_name
        super().__init__(message or f"No handler registered for task state {state_name!r}")


class ObjectStoreError(StepGateError):
    """Object store operation failed."""

    def __init__(self, bucket: str, path: str, message: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(message)


class ObjectNotFoundError(ObjectStoreError):
    """Object does not exist."""
