from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from composite_runner.domain.definition import ActionReference
from composite_runner.ports.shell import CommandOutcome


@dataclass(frozen=True, slots=True)
class InvocationContext:
    # What an action handler may see of the run: the step's directory and environment.
    step_name: str
    cwd: Path
    env: Mapping[str, str] | None
    timeout: float | None


# ActionInvoker delegates a step to an external, versioned action.
@runtime_checkable
class ActionInvoker(Protocol):
    def invoke(
        self,
        reference: ActionReference,
        inputs: Mapping[str, str],
        ctx: InvocationContext,
    ) -> CommandOutcome:
        """Run the referenced action; must reject unpinned references before any call."""
        raise NotImplementedError("ActionInvoker is a port; use a concrete adapter.")
