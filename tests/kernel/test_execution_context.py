from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path

from composite_runner.domain.results import RunState, StepResult, StepStatus
from composite_runner.kernel.cancellation import CancellationToken
from composite_runner.kernel.context import ContextFactory


def test_factory_creates_fresh_contexts(tmp_path: Path) -> None:
    # Each run gets its own context with its own result list.
    factory = ContextFactory(working_directory=tmp_path)
    first = factory.new({"a": "1"})
    second = factory.new({"a": "1"})
    assert first.run_id != second.run_id
    assert first.results is not second.results
    assert first.state is RunState.NOT_STARTED


def test_inputs_are_a_snapshot(tmp_path: Path) -> None:
    supplied = {"a": "1"}
    ctx = ContextFactory(working_directory=tmp_path).new(supplied)
    supplied["a"] = "2"
    assert ctx.inputs["a"] == "1"


def test_resolve_directory(tmp_path: Path) -> None:
    # Relative paths hang off the base directory; absolute paths are kept.
    ctx = ContextFactory(working_directory=tmp_path).new({})
    assert ctx.resolve_directory(None) == tmp_path
    assert ctx.resolve_directory(".") == tmp_path / "."
    assert ctx.resolve_directory("sub/dir") == tmp_path / "sub" / "dir"
    assert ctx.resolve_directory(str(tmp_path / "abs")) == tmp_path / "abs"


def test_step_env_inherits_when_nothing_is_captured(tmp_path: Path) -> None:
    # No captured env and no overlay means plain inheritance (None).
    ctx = ContextFactory(working_directory=tmp_path).new({})
    assert ctx.step_env({}) is None
    overlaid = ctx.step_env({"X_COMPOSITE_TEST": "1"})
    assert overlaid is not None and overlaid["X_COMPOSITE_TEST"] == "1"
    assert "X_COMPOSITE_TEST" not in os.environ


def test_cancellation_token() -> None:
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled
    assert token.reason == "Run cancelled"


def test_step_status_follows_lifecycle(tmp_path: Path) -> None:
    # pending until begun, running while active, then the recorded outcome.
    ctx = ContextFactory(working_directory=tmp_path).new({})
    assert ctx.status_of(0) is StepStatus.PENDING
    ctx.begin(0)
    assert ctx.status_of(0) is StepStatus.RUNNING
    assert ctx.status_of(1) is StepStatus.PENDING
    ctx.record(
        StepResult(
            name="A",
            index=0,
            status=StepStatus.FAILED,
            exit_code=2,
            stdout="",
            stderr="",
            duration_ms=1.0,
            started_at=datetime.now(tz=UTC),
        )
    )
    assert ctx.status_of(0) is StepStatus.FAILED
    assert ctx.running is None
