from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from composite_runner.adapters.actions import build_invoker
from composite_runner.adapters.log_sinks import build_log_sink
from composite_runner.adapters.shell import SubprocessShellExecutor
from composite_runner.config.settings import RunnerSettings
from composite_runner.domain.definition import ActionDefinition
from composite_runner.domain.results import RunReport
from composite_runner.kernel.cancellation import CancellationToken
from composite_runner.kernel.context import ContextFactory
from composite_runner.kernel.engine import Engine
from composite_runner.kernel.inputs import resolve
from composite_runner.ports.action_invoker import ActionInvoker
from composite_runner.ports.log_sink import LogSink
from composite_runner.ports.shell import ShellExecutor


@dataclass(frozen=True, slots=True)
class AppRuntime:
    # AppRuntime bundles the wired engine with the per-run policy taken from settings.
    engine: Engine
    context_factory: ContextFactory
    log_sink: LogSink
    fail_fast: bool

    def close(self) -> None:
        self.log_sink.close()


def build_runtime(
    settings: RunnerSettings,
    *,
    working_directory: Path,
    env: Mapping[str, str] | None = None,
    shell: ShellExecutor | None = None,
    actions: ActionInvoker | None = None,
    log_sink: LogSink | None = None,
) -> AppRuntime:
    # Ports default to the subprocess adapters; tests pass fakes instead.
    executor = shell if shell is not None else SubprocessShellExecutor()
    if actions is None:
        actions = build_invoker(
            executor,
            runtimes={name: item.install_command for name, item in settings.runtimes.items()},
            host_action_command=settings.host_action_command,
        )
    if log_sink is None:
        log_sink = build_log_sink(settings.logging.sink, settings.logging.path)
    engine = Engine(
        shell=executor,
        actions=actions,
        log_sink=log_sink,
        default_timeout_minutes=settings.default_timeout_minutes,
    )
    return AppRuntime(
        engine=engine,
        context_factory=ContextFactory(working_directory=working_directory, env=env),
        log_sink=log_sink,
        fail_fast=settings.fail_fast,
    )


def run_action(
    definition: ActionDefinition,
    supplied: Mapping[str, str],
    runtime: AppRuntime,
    *,
    cancel_token: CancellationToken | None = None,
    run_id: str | None = None,
) -> RunReport:
    # Input resolution raises before the context exists, so a missing input runs no step.
    inputs = resolve(definition.inputs, supplied)
    ctx = runtime.context_factory.new(inputs, run_id=run_id)
    return runtime.engine.run(
        definition.steps,
        ctx,
        fail_fast=runtime.fail_fast,
        name=definition.name,
        cancel_token=cancel_token,
    )
