"""Execution engine for workflow definitions.

One run is strictly sequential: the handler bound to the current task state
is called with the payload, and its result becomes the next payload. A
failing handler is retried by the first matching ``Retry`` rule until its
``MaxAttempts`` are spent, then routed by the first matching ``Catch`` rule.
Anything still unmatched ends the run as ``UNHANDLED_ERROR``.
"""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from stepgate.core.exceptions import ResultPathError, UnboundStateError
from stepgate.core.protocols import TaskHandler
from stepgate.workflow.context import (
    ExecutionContext,
    ExecutionResult,
    ExecutionStatus,
    HistoryEventType,
)
from stepgate.workflow.definition import (
    FailState,
    SucceedState,
    TaskState,
    WorkflowDefinition,
    parse_definition,
)
from stepgate.workflow.errors import ErrorKind, error_kind_of, matches

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRANSITIONS = 1000


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def apply_result_path(payload: Any, result_path: str | None, value: Any) -> Any:
    """Write ``value`` into a copy of ``payload`` at a ``$.a.b`` style path.

    Missing intermediate keys are created. The payload is never replaced
    wholesale except by ``"$"``.

    Raises:
        ResultPathError: the payload, or an object on the path, is not a mapping.
    """
    if result_path is None:
        return payload
    if result_path == "$":
        return value

    if not isinstance(payload, dict):
        raise ResultPathError(f"Cannot write {result_path} into a {type(payload).__name__} payload")

    keys = result_path[2:].split(".")
    result = copy.deepcopy(payload)
    node = result
    for key in keys[:-1]:
        child = node.setdefault(key, {})
        if not isinstance(child, dict):
            raise ResultPathError(f"Cannot write {result_path}: {key!r} holds a {type(child).__name__}")
        node = child
    node[keys[-1]] = value
    return result


class StateMachine:
    """A parsed workflow definition plus the handlers bound to its task states."""

    def __init__(
        self,
        definition: WorkflowDefinition,
        *,
        max_transitions: int = DEFAULT_MAX_TRANSITIONS,
        sleep: Callable[[float], None] = time.sleep,
        interval_scale: float = 1.0,
    ) -> None:
        self.definition = definition
        self.max_transitions = max_transitions
        self._sleep = sleep
        self._interval_scale = interval_scale
        self._handlers: dict[str, TaskHandler] = {}

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any], **kwargs: Any) -> StateMachine:
        return cls(parse_definition(data), **kwargs)

    # ---- Handler binding ----

    def set_task_handler(self, state_name: str, handler: TaskHandler) -> None:
        state = self.definition.states.get(state_name)
        if not isinstance(state, TaskState):
            raise UnboundStateError(state_name, f"Cannot bind handler: no task state named {state_name!r}")
        self._handlers[state_name] = handler

    def set_task_handlers(self, handlers: Mapping[str, TaskHandler]) -> None:
        for name, handler in handlers.items():
            self.set_task_handler(name, handler)

    def unbound_states(self) -> list[str]:
        return [name for name in self.definition.task_names() if name not in self._handlers]

    # ---- Execution ----

    def execute(self, payload: Any) -> ExecutionResult:
        """Run the machine from ``StartAt`` until a terminal outcome.

        Raises:
            UnboundStateError: a task state has no handler; nothing is run.
        """
        unbound = self.unbound_states()
        if unbound:
            raise UnboundStateError(unbound[0])

        ctx = ExecutionContext(current_state=self.definition.start_at, payload=payload)

        while True:
            if ctx.transitions >= self.max_transitions:
                return self._abort(ctx, f"Exceeded {self.max_transitions} state transitions")
            ctx.transitions += 1

            state = self.definition.states[ctx.current_state]
            ctx.record(HistoryEventType.STATE_ENTERED)
            logger.debug("Entering state %s", ctx.current_state)

            if isinstance(state, SucceedState):
                return self._finish(ctx, ExecutionStatus.SUCCEEDED)
            if isinstance(state, FailState):
                return self._finish(ctx, ExecutionStatus.FAILED, state.error, state.cause)

            result = self._run_task(ctx, state)
            if result is not None:
                return result

    def _run_task(self, ctx: ExecutionContext, state: TaskState) -> ExecutionResult | None:
        """Run one task state; returns a result only when the run ends here."""
        name = ctx.current_state
        handler = self._handlers[name]
        attempts = [0] * len(state.retry)
        ctx.retry_attempts[name] = attempts

        while True:
            try:
                arg = copy.deepcopy(ctx.payload)
            except Exception as exc:
                return self._abort(ctx, f"Payload for {name} cannot be copied: {_safe_str(exc)}")

            try:
                output = handler(arg)
            except Exception as exc:
                kind, cause = error_kind_of(exc), _safe_str(exc)
                ctx.record(HistoryEventType.TASK_FAILED, error=kind, cause=cause)
            else:
                ctx.payload = arg if output is None else output
                ctx.record(HistoryEventType.TASK_SUCCEEDED)
                if state.end:
                    return self._finish(ctx, ExecutionStatus.SUCCEEDED)
                ctx.current_state = state.next
                return None

            index = next((i for i, rule in enumerate(state.retry) if matches(rule.error_equals, kind)), None)
            if index is not None and attempts[index] < state.retry[index].max_attempts:
                attempts[index] += 1
                interval = state.retry[index].interval_seconds * self._interval_scale
                ctx.record(HistoryEventType.TASK_RETRIED, error=kind, cause=cause, attempt=attempts[index])
                logger.warning("State %s failed with %s, retry %d in %ss: %s",
                               name, kind, attempts[index], interval, cause)
                self._sleep(interval)
                continue

            catcher = next((rule for rule in state.catch if matches(rule.error_equals, kind)), None)
            if catcher is None:
                logger.error("State %s failed with unhandled %s: %s", name, kind, cause)
                return self._finish(ctx, ExecutionStatus.UNHANDLED_ERROR, kind, cause)

            logger.warning("State %s failed with %s, caught -> %s", name, kind, catcher.next)
            try:
                ctx.payload = apply_result_path(ctx.payload, catcher.result_path, {"Error": kind, "Cause": cause})
            except Exception as exc:
                return self._abort(ctx, f"Catching {kind} in {name} failed: {_safe_str(exc)}")
            ctx.record(HistoryEventType.ERROR_CAUGHT, error=kind, cause=cause)
            ctx.current_state = catcher.next
            return None

    def _abort(self, ctx: ExecutionContext, cause: str) -> ExecutionResult:
        """End the run on an engine-level fault rather than a handler error."""
        logger.error("Execution aborted in %s: %s", ctx.current_state, cause)
        return self._finish(ctx, ExecutionStatus.UNHANDLED_ERROR, ErrorKind.RUNTIME.value, cause)

    def _finish(self, ctx: ExecutionContext, status: ExecutionStatus,
                error: str | None = None, cause: str | None = None) -> ExecutionResult:
        if status == ExecutionStatus.SUCCEEDED:
            ctx.record(HistoryEventType.EXECUTION_SUCCEEDED)
        else:
            ctx.record(HistoryEventType.EXECUTION_FAILED, error=error, cause=cause)
        logger.info("Execution finished in %s with %s", ctx.current_state, status)
        return ExecutionResult(
            status=status,
            output=ctx.payload,
            error=error,
            cause=cause,
            last_state=ctx.current_state,
            history=ctx.history,
        )


def execute(definition: WorkflowDefinition | str | bytes | Mapping[str, Any],
            handlers: Mapping[str, TaskHandler], payload: Any, **kwargs: Any) -> ExecutionResult:
    """Parse (if needed), bind ``handlers`` and run ``definition`` on ``payload``."""
    if not isinstance(definition, WorkflowDefinition):
        definition = parse_definition(definition)
    machine = StateMachine(definition, **kwargs)
    machine.set_task_handlers(handlers)
    return machine.execute(payload)
