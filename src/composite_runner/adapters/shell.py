from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from composite_runner.domain.definition import ShellKind
from composite_runner.ports.shell import CommandOutcome, ShellExecutor

# Conventional "command not found" status used when the interpreter itself is missing.
EXIT_COMMAND_NOT_FOUND = 127
# Found but not runnable (no execute permission, bad format).
EXIT_COMMAND_NOT_EXECUTABLE = 126


class SubprocessShellExecutor(ShellExecutor):
    # Writes command text to a script file and runs the shell's command line on it.
    def __init__(self, *, script_dir: Path | None = None, encoding: str = "utf-8") -> None:
        self._script_dir = script_dir
        self._encoding = encoding

    def run(
        self,
        command: str,
        *,
        shell: ShellKind,
        cwd: Path,
        env: Mapping[str, str] | None,
        timeout: float | None,
    ) -> CommandOutcome:
        script = self._write_script(command, shell)
        try:
            argv = [part.replace("{0}", str(script)) for part in shell.command_template]
            return self.run_argv(argv, cwd=cwd, env=env, timeout=timeout)
        finally:
            script.unlink(missing_ok=True)

    def run_argv(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None,
        timeout: float | None,
    ) -> CommandOutcome:
        if not cwd.is_dir():
            return CommandOutcome(
                exit_code=1,
                stdout="",
                stderr=f"working directory does not exist: {cwd}\n",
            )
        try:
            completed = subprocess.run(
                list(argv),
                cwd=cwd,
                env=None if env is None else dict(env),
                capture_output=True,
                text=True,
                encoding=self._encoding,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            # subprocess.run already killed the child; keep whatever output it produced.
            return CommandOutcome(
                exit_code=None,
                stdout=_text(exc.stdout, self._encoding),
                stderr=_text(exc.stderr, self._encoding),
                timed_out=True,
            )
        except FileNotFoundError as exc:
            return CommandOutcome(
                exit_code=EXIT_COMMAND_NOT_FOUND,
                stdout="",
                stderr=f"{argv[0]}: {exc.strerror or exc}\n",
            )
        except OSError as exc:
            return CommandOutcome(
                exit_code=EXIT_COMMAND_NOT_EXECUTABLE,
                stdout="",
                stderr=f"{argv[0]}: {exc.strerror or exc}\n",
            )
        return CommandOutcome(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def _write_script(self, command: str, shell: ShellKind) -> Path:
        fd, name = tempfile.mkstemp(suffix=shell.script_suffix, prefix="step-", dir=self._script_dir)
        # POSIX shells expect LF; cmd and PowerShell accept the platform newline.
        newline = "\n" if shell.posix else os.linesep
        with os.fdopen(fd, "w", encoding=self._encoding, newline=newline) as handle:
            handle.write(command)
            if not command.endswith("\n"):
                handle.write("\n")
        return Path(name)


def _text(value: str | bytes | None, encoding: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(encoding, errors="replace")
    return value
