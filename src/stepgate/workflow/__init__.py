"""Declarative state machine: parse a definition, bind handlers, execute."""

from __future__ import annotations

from stepgate.workflow.context import ExecutionResult, ExecutionStatus
from stepgate.workflow.definition import EMPTY_STATE_MACHINE, WorkflowDefinition, parse_definition
from stepgate.workflow.engine import StateMachine, execute
from stepgate.workflow.errors import ErrorKind
from stepgate.workflow.handlers import release_task

__all__ = [
    "EMPTY_STATE_MACHINE",
    "ErrorKind",
    "ExecutionResult",
    "ExecutionStatus",
    "StateMachine",
    "WorkflowDefinition",
    "execute",
    "parse_definition",
    "release_task",
]
