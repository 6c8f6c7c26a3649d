"""Execution context, history and result models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field

from stepgate.core.utils import utcnow


class ExecutionStatus(StrEnum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"  # reached a Fail state
    UNHANDLED_ERROR = "UNHANDLED_ERROR"  # no catch rule matched, or the engine aborted


class HistoryEventType(StrEnum):
    STATE_ENTERED = "StateEntered"
    TASK_SUCCEEDED = "TaskSucceeded"
    TASK_FAILED = "TaskFailed"
    TASK_RETRIED = "TaskRetried"
    ERROR_CAUGHT = "ErrorCaught"
    EXECUTION_SUCCEEDED = "ExecutionSucceeded"
    EXECUTION_FAILED = "ExecutionFailed"


class HistoryEvent(BaseModel):
    state: str
    event: HistoryEventType
    error: Optional[str] = None
    cause: Optional[str] = None
    attempt: int = 0
    timestamp: datetime = Field(default_factory=utcnow)


class ExecutionContext(BaseModel):
    """Mutable state of one run; discarded when the run ends."""

    current_state: str
    payload: Any = None
    transitions: int = 0
    retry_attempts: dict[str, list[int]] = Field(default_factory=dict)
    history: list[HistoryEvent] = Field(default_factory=list)

    def record(self, event: HistoryEventType, *, error: str | None = None,
               cause: str | None = None, attempt: int = 0) -> None:
        self.history.append(HistoryEvent(
            state=self.current_state, event=event, error=error, cause=cause, attempt=attempt,
        ))

    def visited(self) -> list[str]:
        """State names in the order they were entered."""
        return [e.state for e in self.history if e.event == HistoryEventType.STATE_ENTERED]


class ExecutionResult(BaseModel):
    status: ExecutionStatus
    output: Any = None
    error: Optional[str] = None
    cause: Optional[str] = None
    last_state: str = ""
    history: list[HistoryEvent] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCEEDED

    def visited(self) -> list[str]:
        return [e.state for e in self.history if e.event == HistoryEventType.STATE_ENTERED]
