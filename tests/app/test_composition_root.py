from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from composite_runner.adapters.actions import PinnedActionInvoker
from composite_runner.adapters.log_sinks import MemoryLogSink, StdoutLogSink
from composite_runner.app.composition_root import build_runtime, run_action
from composite_runner.config.loader import parse_definition
from composite_runner.config.settings import RunnerSettings
from composite_runner.domain.errors import MissingRequiredInput
from composite_runner.ports.shell import CommandOutcome

DEFINITION = """\
name: build
inputs:
  working-directory:
    required: true
    default: "."
  target:
    required: true
runs:
  using: composite
  steps:
    - name: compile
      shell: bash
      working-directory: ${{ inputs.working-directory }}
      run: make ${{ inputs.target }}
    - name: check
      shell: bash
      run: make check
"""


@dataclass
class _RecordingShell:
    commands: list[tuple[str, Path]] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)

    def run(self, command, *, shell, cwd, env, timeout):
        self.commands.append((command, cwd))
        return CommandOutcome(1 if command in self.failing else 0, "", "")

    def run_argv(self, argv, *, cwd, env, timeout):
        return CommandOutcome(0, "", "")


def test_missing_required_input_runs_no_step(tmp_path: Path) -> None:
    # Resolution fails before any step executes.
    shell = _RecordingShell()
    runtime = build_runtime(RunnerSettings(), working_directory=tmp_path, shell=shell, log_sink=MemoryLogSink())
    with pytest.raises(MissingRequiredInput):
        run_action(parse_definition(DEFINITION), {}, runtime)
    assert shell.commands == []


def test_run_action_uses_defaults_and_settings(tmp_path: Path) -> None:
    # The default working directory "." resolves to the base directory.
    shell = _RecordingShell(failing={"make all"})
    settings = RunnerSettings(fail_fast=False)
    runtime = build_runtime(settings, working_directory=tmp_path, shell=shell, log_sink=MemoryLogSink())
    report = run_action(parse_definition(DEFINITION), {"target": "all"}, runtime)

    assert shell.commands == [("make all", tmp_path / "."), ("make check", tmp_path)]
    assert [r.exit_code for r in report.results] == [1, 0]
    assert report.success is False
    assert report.definition == "build"


def test_build_runtime_defaults(tmp_path: Path) -> None:
    runtime = build_runtime(RunnerSettings(default_timeout_minutes=3), working_directory=tmp_path)
    assert isinstance(runtime.engine.actions, PinnedActionInvoker)
    assert isinstance(runtime.log_sink, StdoutLogSink)
    assert runtime.engine.default_timeout_minutes == 3
    assert runtime.fail_fast is True
