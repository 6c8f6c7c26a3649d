"""Seeded random payloads and handler behaviours never escape the engine."""

from __future__ import annotations

import random

import pytest

from stepgate.workflow import ExecutionStatus, StateMachine

KINDS = ["ValidationError", "LockExistsError", "LockError", "HaltError", "DeployError", "Weird.Kind", ""]

DEFINITION = {
    "StartAt": "Validate",
    "States": {
        "Validate": {
            "Type": "Task",
            "Next": "Lock",
            "Retry": [{"ErrorEquals": ["LockError"], "MaxAttempts": 2, "IntervalSeconds": 0}],
            "Catch": [{"ErrorEquals": ["ValidationError"], "ResultPath": "$.error", "Next": "FailureClean"}],
        },
        "Lock": {
            "Type": "Task",
            "Next": "Deploy",
            "Catch": [
                {"ErrorEquals": ["LockExistsError"], "ResultPath": "$.error", "Next": "FailureClean"},
                {"ErrorEquals": ["States.ALL"], "ResultPath": "$.error", "Next": "Release"},
            ],
        },
        "Deploy": {
            "Type": "Task",
            "Next": "Success",
            "Retry": [{"ErrorEquals": ["*"], "MaxAttempts": 1, "IntervalSeconds": 0}],
            "Catch": [{"ErrorEquals": ["States.ALL"], "ResultPath": "$.a.b", "Next": "Release"}],
        },
        "Release": {
            "Type": "Task",
            "Next": "FailureClean",
            "Catch": [{"ErrorEquals": ["*"], "ResultPath": None, "Next": "FailureDirty"}],
        },
        "FailureClean": {"Type": "Fail", "Error": "NotifyError"},
        "FailureDirty": {"Type": "Fail", "Error": "AlertError"},
        "Success": {"Type": "Succeed"},
    },
}


class KindError(Exception):
    def __init__(self, kind: object) -> None:
        super().__init__("fuzzed")
        self.error_kind = kind


class Unprintable(Exception):
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


def random_value(rng: random.Random, depth: int = 0):
    choices = ["none", "bool", "int", "float", "str", "bytes"]
    if depth < 3:
        choices += ["list", "dict"]
    choice = rng.choice(choices)
    if choice == "none":
        return None
    if choice == "bool":
        return rng.random() < 0.5
    if choice == "int":
        return rng.randint(-10**12, 10**12)
    if choice == "float":
        return rng.choice([0.0, -1.5, float("inf"), float("nan"), rng.random()])
    if choice == "str":
        return "".join(chr(rng.randint(0, 0x2FF)) for _ in range(rng.randint(0, 12)))
    if choice == "bytes":
        return bytes(rng.randint(0, 255) for _ in range(rng.randint(0, 8)))
    if choice == "list":
        return [random_value(rng, depth + 1) for _ in range(rng.randint(0, 4))]
    return {f"k{i}": random_value(rng, depth + 1) for i in range(rng.randint(0, 4))}


def random_handler(rng: random.Random):
    mode = rng.choice(["echo", "none", "replace", "kind", "plain", "unprintable", "odd-kind", "flaky"])
    replacement = random_value(rng)
    kind = rng.choice(KINDS)
    state = {"calls": 0}

    def handler(payload):
        state["calls"] += 1
        if mode == "echo":
            return payload
        if mode == "none":
            return None
        if mode == "replace":
            return replacement
        if mode == "kind":
            raise KindError(kind)
        if mode == "plain":
            raise ValueError(payload)
        if mode == "unprintable":
            raise Unprintable()
        if mode == "odd-kind":
            raise KindError(42)
        if state["calls"] % 2:
            raise KindError(kind)
        return payload

    return handler


@pytest.mark.parametrize("seed", range(200))
def test_random_runs_end_in_a_classified_result(seed):
    rng = random.Random(seed)
    machine = StateMachine.from_json(DEFINITION, sleep=lambda _: None)
    machine.set_task_handlers({name: random_handler(rng) for name in machine.definition.task_names()})

    result = machine.execute(random_value(rng))

    assert result.status in {
        ExecutionStatus.SUCCEEDED, ExecutionStatus.FAILED, ExecutionStatus.UNHANDLED_ERROR,
    }
    if result.status != ExecutionStatus.SUCCEEDED:
        assert result.error is not None
    assert result.visited()[0] == "Validate"
