from __future__ import annotations

from datetime import UTC, datetime

from composite_runner.domain.errors import (
    StepExecutionError,
    TemplateResolutionError,
    UnpinnedReferenceError,
)
from composite_runner.domain.results import (
    AbortReason,
    ExitCode,
    RunReport,
    RunState,
    StepResult,
    StepStatus,
    abort_reason_for,
)


def _result(name: str, code: int | None) -> StepResult:
    status = StepStatus.SUCCEEDED if code == 0 else StepStatus.FAILED
    return StepResult(
        name=name,
        index=0,
        status=status,
        exit_code=code,
        stdout="",
        stderr="",
        duration_ms=1.0,
        started_at=datetime.now(tz=UTC),
        error=None if code == 0 else StepExecutionError(name, code),
    )


def test_success_requires_completed_state_and_zero_codes() -> None:
    ok = RunReport("a", RunState.COMPLETED, (_result("x", 0), _result("y", 0)))
    failed = RunReport("a", RunState.COMPLETED, (_result("x", 0), _result("y", 2)))
    timed_out = RunReport("a", RunState.COMPLETED, (_result("x", None),))
    assert ok.success and ok.exit_code is ExitCode.OK
    assert not failed.success and failed.exit_code is ExitCode.STEP_FAILED
    assert not timed_out.success


def test_empty_completed_run_is_success() -> None:
    assert RunReport("a", RunState.COMPLETED, ()).success


def test_exit_codes_distinguish_abort_reasons() -> None:
    # Exit codes are part of the CLI contract.
    assert RunReport("a", RunState.ABORTED, (), AbortReason.CANCELLED).exit_code == 130
    assert RunReport("a", RunState.ABORTED, (), AbortReason.TEMPLATE_ERROR).exit_code == 3
    assert RunReport("a", RunState.ABORTED, (), AbortReason.UNPINNED_REFERENCE).exit_code == 4
    assert RunReport("a", RunState.ABORTED, (_result("x", 1),), AbortReason.FAILED).exit_code == 1
    assert int(ExitCode.DEFINITION_ERROR) == 2


def test_abort_reason_mapping() -> None:
    assert abort_reason_for(TemplateResolutionError("inputs.x")) is AbortReason.TEMPLATE_ERROR
    assert abort_reason_for(UnpinnedReferenceError("a@v1")) is AbortReason.UNPINNED_REFERENCE
    assert abort_reason_for(StepExecutionError("s", 1)) is AbortReason.FAILED


def test_template_error_message_shows_expression() -> None:
    assert str(TemplateResolutionError("inputs.x", step="s")) == "Cannot resolve expression '${{ inputs.x }}' (step 's')"
