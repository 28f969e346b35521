from __future__ import annotations

import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from composite_runner.domain.results import RunState, StepResult, StepStatus


@dataclass(slots=True)
class ExecutionContext:
    # Owned by exactly one engine run; nothing else mutates it while the run is active.
    run_id: str
    inputs: Mapping[str, str]
    working_directory: Path
    env: Mapping[str, str] | None = None
    state: RunState = RunState.NOT_STARTED
    results: list[StepResult] = field(default_factory=list)
    running: int | None = None

    def __post_init__(self) -> None:
        self.inputs = MappingProxyType(dict(self.inputs))
        if self.env is not None:
            self.env = MappingProxyType(dict(self.env))

    def resolve_directory(self, path: str | None) -> Path:
        # Relative step directories are taken from the run's base directory.
        if not path:
            return self.working_directory
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.working_directory / candidate

    def step_env(self, overlay: Mapping[str, str]) -> dict[str, str] | None:
        # None keeps subprocess inheritance; an overlay is applied to a copy only.
        if not overlay:
            return None if self.env is None else dict(self.env)
        base = dict(os.environ) if self.env is None else dict(self.env)
        base.update(overlay)
        return base

    def begin(self, index: int) -> None:
        self.running = index

    def record(self, result: StepResult) -> None:
        self.results.append(result)
        self.running = None

    def status_of(self, index: int) -> StepStatus:
        # pending -> running -> succeeded | failed; steps that never started stay pending.
        for result in self.results:
            if result.index == index:
                return result.status
        return StepStatus.RUNNING if self.running == index else StepStatus.PENDING


@dataclass(frozen=True, slots=True)
class ContextFactory:
    # Builds a fresh context per run; env is captured at run start, not read lazily.
    working_directory: Path
    env: Mapping[str, str] | None = None

    def new(self, inputs: Mapping[str, str], *, run_id: str | None = None) -> ExecutionContext:
        return ExecutionContext(
            run_id=run_id or uuid.uuid4().hex,
            inputs=inputs,
            working_directory=self.working_directory,
            env=self.env,
        )
