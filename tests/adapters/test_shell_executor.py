from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

import pytest

from composite_runner.adapters.shell import (
    EXIT_COMMAND_NOT_EXECUTABLE,
    EXIT_COMMAND_NOT_FOUND,
    SubprocessShellExecutor,
)
from composite_runner.domain.definition import ShellKind

pytestmark = pytest.mark.skipif(
    sys.platform == "win32" or shutil.which("sh") is None,
    reason="POSIX sh required",
)


def test_runs_command_in_working_directory(tmp_path: Path) -> None:
    # Output is captured and the step runs in the requested directory.
    (tmp_path / "marker.txt").write_text("x", encoding="utf-8")
    outcome = SubprocessShellExecutor().run(
        "ls\necho err >&2",
        shell=ShellKind.SH,
        cwd=tmp_path,
        env=None,
        timeout=30,
    )
    assert outcome.exit_code == 0
    assert "marker.txt" in outcome.stdout
    assert outcome.stderr.strip() == "err"
    assert not outcome.timed_out


def test_non_zero_exit_code_is_reported(tmp_path: Path) -> None:
    # sh -e stops at the first failing command.
    outcome = SubprocessShellExecutor().run(
        "false\necho unreachable",
        shell=ShellKind.SH,
        cwd=tmp_path,
        env=None,
        timeout=30,
    )
    assert outcome.exit_code == 1
    assert "unreachable" not in outcome.stdout


def test_env_mapping_is_passed_through(tmp_path: Path) -> None:
    env = dict(os.environ, COMPOSITE_RUNNER_TEST="value")
    outcome = SubprocessShellExecutor().run(
        'echo "$COMPOSITE_RUNNER_TEST"',
        shell=ShellKind.SH,
        cwd=tmp_path,
        env=env,
        timeout=30,
    )
    assert outcome.stdout.strip() == "value"
    assert "COMPOSITE_RUNNER_TEST" not in os.environ


def test_timeout_kills_step(tmp_path: Path) -> None:
    outcome = SubprocessShellExecutor().run(
        "sleep 5",
        shell=ShellKind.SH,
        cwd=tmp_path,
        env=None,
        timeout=0.2,
    )
    assert outcome.timed_out
    assert outcome.exit_code is None


def test_missing_interpreter_maps_to_127(tmp_path: Path) -> None:
    outcome = SubprocessShellExecutor().run_argv(
        ["composite-runner-no-such-binary"],
        cwd=tmp_path,
        env=None,
        timeout=5,
    )
    assert outcome.exit_code == EXIT_COMMAND_NOT_FOUND
    assert "composite-runner-no-such-binary" in outcome.stderr


def test_missing_working_directory_fails_step(tmp_path: Path) -> None:
    outcome = SubprocessShellExecutor().run("true", shell=ShellKind.SH, cwd=tmp_path / "nope", env=None, timeout=5)
    assert outcome.exit_code == 1
    assert "does not exist" in outcome.stderr


def test_script_file_is_removed(tmp_path: Path) -> None:
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    SubprocessShellExecutor(script_dir=scripts).run("true", shell=ShellKind.SH, cwd=tmp_path, env=None, timeout=5)
    assert list(scripts.iterdir()) == []


def test_non_executable_command_maps_to_126(tmp_path: Path) -> None:
    # A file without the execute bit is reported on the step, not raised.
    installer = tmp_path / "installer"
    installer.write_text("#!/bin/sh\necho never\n", encoding="utf-8")
    installer.chmod(0o644)
    outcome = SubprocessShellExecutor().run_argv([str(installer)], cwd=tmp_path, env=None, timeout=5)
    assert outcome.exit_code == EXIT_COMMAND_NOT_EXECUTABLE
    assert str(installer) in outcome.stderr
    assert outcome.stdout == ""
