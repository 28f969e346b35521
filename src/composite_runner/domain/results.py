from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum

from composite_runner.domain.errors import (
    RunnerError,
    StepExecutionError,
    TemplateResolutionError,
    UnpinnedReferenceError,
)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


class AbortReason(str, Enum):
    FAILED = "failed"
    CANCELLED = "cancelled"
    TEMPLATE_ERROR = "template_error"
    UNPINNED_REFERENCE = "unpinned_reference"


class ExitCode(IntEnum):
    # Process exit codes are part of the CLI contract; do not renumber.
    OK = 0
    STEP_FAILED = 1
    DEFINITION_ERROR = 2
    TEMPLATE_ERROR = 3
    UNPINNED_REFERENCE = 4
    CANCELLED = 130


@dataclass(frozen=True, slots=True)
class StepResult:
    # Created once a step finishes; immutable afterwards.
    name: str
    index: int
    status: StepStatus
    exit_code: int | None
    stdout: str
    stderr: str
    duration_ms: float
    started_at: datetime
    error: StepExecutionError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is StepStatus.SUCCEEDED


@dataclass(frozen=True, slots=True)
class RunReport:
    definition: str
    state: RunState
    results: tuple[StepResult, ...]
    reason: AbortReason | None = None
    error: RunnerError | None = None

    @property
    def success(self) -> bool:
        # A run succeeds only if it completed and every step exited with zero.
        return self.state is RunState.COMPLETED and all(
            result.exit_code == 0 for result in self.results
        )

    @property
    def exit_code(self) -> ExitCode:
        if self.reason is AbortReason.CANCELLED:
            return ExitCode.CANCELLED
        if self.reason is AbortReason.TEMPLATE_ERROR:
            return ExitCode.TEMPLATE_ERROR
        if self.reason is AbortReason.UNPINNED_REFERENCE:
            return ExitCode.UNPINNED_REFERENCE
        return ExitCode.OK if self.success else ExitCode.STEP_FAILED


def abort_reason_for(error: RunnerError) -> AbortReason:
    # Maps run-fatal runtime errors to the reason recorded on the report.
    if isinstance(error, TemplateResolutionError):
        return AbortReason.TEMPLATE_ERROR
    if isinstance(error, UnpinnedReferenceError):
        return AbortReason.UNPINNED_REFERENCE
    return AbortReason.FAILED
