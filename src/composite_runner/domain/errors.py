from __future__ import annotations


class RunnerError(Exception):
    # Root of the runner error taxonomy; callers can catch one type at the boundary.
    pass


class DefinitionError(RunnerError, ValueError):
    # Malformed action definition; raised at load time before any step runs.
    pass


class UnsupportedShellError(DefinitionError):
    def __init__(self, shell: str, *, step: str | None = None) -> None:
        where = f" in step '{step}'" if step else ""
        super().__init__(f"Unsupported shell '{shell}'{where}")
        self.shell = shell
        self.step = step


class SettingsError(RunnerError, ValueError):
    # Invalid runner settings file or override.
    pass


class ResolutionError(RunnerError):
    pass


class MissingRequiredInput(ResolutionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Input required and not supplied: {name}")
        self.name = name


class TemplateResolutionError(RunnerError):
    # Placeholder could not be expanded against the resolved inputs; fatal to the run.
    def __init__(self, expression: str, *, step: str | None = None) -> None:
        where = f" (step '{step}')" if step else ""
        super().__init__(f"Cannot resolve expression '${{{{ {expression} }}}}'{where}")
        self.expression = expression
        self.step = step


class UnpinnedReferenceError(RunnerError):
    def __init__(self, reference: str) -> None:
        super().__init__(
            f"Action reference '{reference}' is not pinned to a content hash"
        )
        self.reference = reference


class StepExecutionError(RunnerError):
    # Attached to a failed StepResult; not raised out of the engine.
    def __init__(self, step: str, exit_code: int | None, message: str | None = None) -> None:
        super().__init__(message or f"Step '{step}' exited with code {exit_code}")
        self.step = step
        self.exit_code = exit_code


class StepTimeoutError(StepExecutionError, TimeoutError):
    def __init__(self, step: str, timeout_seconds: float) -> None:
        super().__init__(step, None, f"Step '{step}' timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class Cancelled(RunnerError):
    def __init__(self, message: str = "Run cancelled") -> None:
        super().__init__(message)
