"""Release deployer: the deploy workflow wired to locks, storage and a target."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from stepgate.core.config import AppSettings
from stepgate.core.protocols import IDeployTarget, ILocker, IObjectStore
from stepgate.deployer.handlers import create_task_handlers
from stepgate.deployer.machine import state_machine_definition
from stepgate.models.release import Release
from stepgate.workflow.context import ExecutionResult
from stepgate.workflow.engine import StateMachine


class Deployer:
    """Runs the deploy workflow for one release payload at a time."""

    def __init__(
        self,
        *,
        store: IObjectStore,
        locker: ILocker,
        target: IDeployTarget,
        settings: AppSettings | None = None,
        model: type[Release] = Release,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings or AppSettings()
        self.state_machine = StateMachine(
            state_machine_definition(self._settings),
            max_transitions=self._settings.workflow.max_transitions,
            interval_scale=self._settings.workflow.retry_interval_scale,
            sleep=sleep,
        )
        self.state_machine.set_task_handlers(
            create_task_handlers(store, locker, target, self._settings, model)
        )

    def run(self, payload: Any) -> ExecutionResult:
        if isinstance(payload, Release):
            payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return self.state_machine.execute(payload)


__all__ = ["Deployer", "create_task_handlers", "state_machine_definition"]
