"""Workflow definition documents.

A definition is a JSON document with ``StartAt`` and ``States``; each state
is a ``Task`` (``TaskFn`` is accepted as an alias), ``Fail`` or ``Succeed``.
Parsing either returns a fully checked, immutable ``WorkflowDefinition`` or
raises ``ParseError``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from stepgate.core.exceptions import ParseError

_RESULT_PATH = re.compile(r"^\$(\.[A-Za-z0-9_\-]+)*$")
_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")

EMPTY_STATE_MACHINE = '{"StartAt": "WIN", "States": {"WIN": {"Type": "Succeed"}}}'


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    comment: Optional[str] = Field(default=None, alias="Comment")


class RetryRule(_Node):
    error_equals: tuple[str, ...] = Field(alias="ErrorEquals", min_length=1)
    max_attempts: int = Field(default=3, alias="MaxAttempts", ge=0)
    interval_seconds: float = Field(default=1, alias="IntervalSeconds", ge=0)


class CatchRule(_Node):
    error_equals: tuple[str, ...] = Field(alias="ErrorEquals", min_length=1)
    next: str = Field(alias="Next")
    # "$" replaces the payload, None discards the error
    result_path: Optional[str] = Field(default="$", alias="ResultPath")

    @field_validator("result_path")
    @classmethod
    def _check_path(cls, value: str | None) -> str | None:
        if value is not None and not _RESULT_PATH.match(value):
            raise ValueError(f"unsupported ResultPath {value!r}")
        return value


class TaskState(_Node):
    type: Literal["Task", "TaskFn"] = Field(alias="Type")
    resource: str = Field(default="", alias="Resource")
    next: Optional[str] = Field(default=None, alias="Next")
    end: bool = Field(default=False, alias="End")
    retry: tuple[RetryRule, ...] = Field(default=(), alias="Retry")
    catch: tuple[CatchRule, ...] = Field(default=(), alias="Catch")

    @model_validator(mode="after")
    def _next_or_end(self) -> TaskState:
        if bool(self.next) == self.end:
            raise ValueError("task state needs exactly one of Next or End")
        return self


class FailState(_Node):
    type: Literal["Fail"] = Field(alias="Type")
    error: str = Field(alias="Error")
    cause: Optional[str] = Field(default=None, alias="Cause")


class SucceedState(_Node):
    type: Literal["Succeed"] = Field(alias="Type")


State = Annotated[Union[TaskState, FailState, SucceedState], Field(discriminator="type")]


class WorkflowDefinition(_Node):
    start_at: str = Field(alias="StartAt")
    states: dict[str, State] = Field(alias="States", min_length=1)

    @model_validator(mode="after")
    def _check_references(self) -> WorkflowDefinition:
        if self.start_at not in self.states:
            raise ValueError(f"StartAt {self.start_at!r} is not a defined state")

        for name, state in self.states.items():
            if not isinstance(state, TaskState):
                continue
            targets = [state.next] if state.next else []
            targets.extend(rule.next for rule in state.catch)
            for target in targets:
                if target not in self.states:
                    raise ValueError(f"state {name!r} references unknown state {target!r}")
        return self

    def task_names(self) -> list[str]:
        return [name for name, state in self.states.items() if isinstance(state, TaskState)]


def parse_definition(data: str | bytes | Mapping[str, Any]) -> WorkflowDefinition:
    """Parse and check a workflow definition.

    Raises:
        ParseError: malformed JSON, unknown state types, missing fields or
            references to undefined states.
    """
    try:
        if isinstance(data, (str, bytes, bytearray)):
            return WorkflowDefinition.model_validate_json(data)
        return WorkflowDefinition.model_validate(data)
    except PydanticValidationError as exc:
        raise ParseError(f"Invalid workflow definition: {exc}") from exc


def render_resources(definition_json: str, values: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` placeholders; unknown names are left as they are."""

    def _sub(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_sub, definition_json)
