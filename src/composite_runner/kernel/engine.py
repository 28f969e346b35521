from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from composite_runner.domain.definition import ActionInvocation, InlineCommand, Step
from composite_runner.domain.errors import (
    Cancelled,
    RunnerError,
    StepExecutionError,
    StepTimeoutError,
    TemplateResolutionError,
    UnpinnedReferenceError,
)
from composite_runner.domain.results import (
    AbortReason,
    RunReport,
    RunState,
    StepResult,
    StepStatus,
    abort_reason_for,
)
from composite_runner.kernel.cancellation import CancellationToken
from composite_runner.kernel.context import ExecutionContext
from composite_runner.kernel.template import expand, expand_mapping
from composite_runner.observability import logging as log
from composite_runner.ports.action_invoker import ActionInvoker, InvocationContext
from composite_runner.ports.log_sink import LogSink
from composite_runner.ports.shell import CommandOutcome, ShellExecutor


@dataclass(frozen=True, slots=True)
class _PreparedStep:
    # Step after placeholder expansion; built right before the step starts.
    step: Step
    invocation: InvocationContext
    command: str | None
    with_inputs: dict[str, str]


@dataclass(frozen=True, slots=True)
class Engine:
    # Engine runs steps strictly in declared order; no step starts before the previous one finished.
    shell: ShellExecutor
    actions: ActionInvoker
    log_sink: LogSink | None = None
    default_timeout_minutes: float | None = None

    def run(
        self,
        steps: Sequence[Step],
        ctx: ExecutionContext,
        *,
        fail_fast: bool = True,
        name: str = "action",
        cancel_token: CancellationToken | None = None,
    ) -> RunReport:
        if ctx.state is not RunState.NOT_STARTED:
            raise RuntimeError(f"ExecutionContext {ctx.run_id} was already used for a run")
        ctx.state = RunState.IN_PROGRESS
        self._emit(log.info("run.start", run_id=ctx.run_id, action=name, steps=len(steps), fail_fast=fail_fast))

        reason: AbortReason | None = None
        error: RunnerError | None = None
        for index, step in enumerate(steps):
            # Cancellation is only observed at step boundaries.
            if _cancelled(cancel_token):
                reason = AbortReason.CANCELLED
                error = Cancelled(cancel_token.reason)
                self._skip(steps[index:], ctx, start=index, why="cancelled")
                break

            try:
                prepared = self._prepare(step, ctx)
                result = self._execute(prepared, index, ctx)
            except (TemplateResolutionError, UnpinnedReferenceError) as exc:
                # Run-fatal: the step never started, so no StepResult is recorded for it.
                ctx.running = None
                reason = abort_reason_for(exc)
                error = exc
                self._emit(log.error("step.aborted", run_id=ctx.run_id, step=step.name, index=index, error=str(exc)))
                self._skip(steps[index + 1 :], ctx, start=index + 1, why=reason.value)
                break

            ctx.record(result)
            self._emit(
                log.info(
                    "step.finish",
                    run_id=ctx.run_id,
                    step=step.name,
                    index=index,
                    status=result.status.value,
                    exit_code=result.exit_code,
                    duration_ms=round(result.duration_ms, 3),
                )
            )
            # A cancel that arrived while the step ran wins over its exit code.
            if _cancelled(cancel_token):
                reason = AbortReason.CANCELLED
                error = Cancelled(cancel_token.reason)
                self._skip(steps[index + 1 :], ctx, start=index + 1, why="cancelled")
                break
            if not result.succeeded and fail_fast:
                reason = AbortReason.FAILED
                self._skip(steps[index + 1 :], ctx, start=index + 1, why="fail-fast")
                break

        ctx.state = RunState.ABORTED if reason is not None else RunState.COMPLETED
        report = RunReport(
            definition=name,
            state=ctx.state,
            results=tuple(ctx.results),
            reason=reason,
            error=error,
        )
        self._emit(
            log.info(
                "run.finish",
                run_id=ctx.run_id,
                action=name,
                state=report.state.value,
                reason=None if reason is None else reason.value,
                success=report.success,
            )
        )
        return report

    def _prepare(self, step: Step, ctx: ExecutionContext) -> _PreparedStep:
        # Working directory is re-resolved per step so step overrides take effect.
        workdir = step.working_directory
        cwd = ctx.resolve_directory(expand(workdir, ctx.inputs, step=step.name) if workdir else None)
        env = ctx.step_env(expand_mapping(step.env, ctx.inputs, step=step.name))
        invocation = InvocationContext(step_name=step.name, cwd=cwd, env=env, timeout=self._timeout(step))
        if isinstance(step.body, InlineCommand):
            command = expand(step.body.text, ctx.inputs, step=step.name)
            return _PreparedStep(step=step, invocation=invocation, command=command, with_inputs={})
        with_inputs = expand_mapping(step.body.with_inputs, ctx.inputs, step=step.name)
        return _PreparedStep(step=step, invocation=invocation, command=None, with_inputs=with_inputs)

    def _execute(self, prepared: _PreparedStep, index: int, ctx: ExecutionContext) -> StepResult:
        step = prepared.step
        invocation = prepared.invocation
        ctx.begin(index)
        self._emit(
            log.info(
                "step.start",
                run_id=ctx.run_id,
                step=step.name,
                index=index,
                status=ctx.status_of(index).value,
                cwd=str(invocation.cwd),
            )
        )
        started_at = datetime.now(tz=UTC)
        t0 = time.perf_counter()
        if isinstance(step.body, ActionInvocation):
            # Invoker raises UnpinnedReferenceError before touching any handler.
            outcome = self.actions.invoke(step.body.reference, prepared.with_inputs, invocation)
        else:
            assert step.shell is not None and prepared.command is not None
            outcome = self.shell.run(
                prepared.command,
                shell=step.shell,
                cwd=invocation.cwd,
                env=invocation.env,
                timeout=invocation.timeout,
            )
        duration_ms = (time.perf_counter() - t0) * 1000.0
        return _to_result(step, index, outcome, started_at, duration_ms, invocation.timeout)

    def _timeout(self, step: Step) -> float | None:
        minutes = step.timeout_minutes if step.timeout_minutes is not None else self.default_timeout_minutes
        return None if minutes is None else minutes * 60.0

    def _skip(self, steps: Sequence[Step], ctx: ExecutionContext, *, start: int, why: str) -> None:
        for offset, step in enumerate(steps):
            index = start + offset
            self._emit(
                log.warning(
                    "step.skipped",
                    run_id=ctx.run_id,
                    step=step.name,
                    index=index,
                    status=ctx.status_of(index).value,
                    reason=why,
                )
            )

    def _emit(self, message: log.LogMessage) -> None:
        if self.log_sink is not None:
            self.log_sink.emit(message)


def _cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.cancelled


def _to_result(
    step: Step,
    index: int,
    outcome: CommandOutcome,
    started_at: datetime,
    duration_ms: float,
    timeout: float | None,
) -> StepResult:
    error: StepExecutionError | None = None
    if outcome.timed_out:
        error = StepTimeoutError(step.name, timeout or 0.0)
    elif outcome.exit_code != 0:
        error = StepExecutionError(step.name, outcome.exit_code)
    return StepResult(
        name=step.name,
        index=index,
        status=StepStatus.SUCCEEDED if error is None else StepStatus.FAILED,
        exit_code=None if outcome.timed_out else outcome.exit_code,
        stdout=outcome.stdout,
        stderr=outcome.stderr,
        duration_ms=duration_ms,
        started_at=started_at,
        error=error,
    )
