from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from composite_runner.domain.definition import ShellKind


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    # Raw result of one external process; timed_out implies exit_code is None.
    exit_code: int | None
    stdout: str
    stderr: str
    timed_out: bool = False


# ShellExecutor runs interpreted command text or argument vectors in a directory.
@runtime_checkable
class ShellExecutor(Protocol):
    def run(
        self,
        command: str,
        *,
        shell: ShellKind,
        cwd: Path,
        env: Mapping[str, str] | None,
        timeout: float | None,
    ) -> CommandOutcome:
        """Run command text under the given shell and capture its output."""
        raise NotImplementedError("ShellExecutor is a port; use a concrete adapter.")

    def run_argv(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None,
        timeout: float | None,
    ) -> CommandOutcome:
        """Run an argument vector without an intermediate shell."""
        raise NotImplementedError("ShellExecutor is a port; use a concrete adapter.")
