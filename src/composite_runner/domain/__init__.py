from .definition import (
    ActionDefinition,
    ActionInvocation,
    ActionReference,
    InlineCommand,
    InputSpec,
    ShellKind,
    Step,
)
from .errors import (
    Cancelled,
    DefinitionError,
    MissingRequiredInput,
    ResolutionError,
    RunnerError,
    SettingsError,
    StepExecutionError,
    StepTimeoutError,
    TemplateResolutionError,
    UnpinnedReferenceError,
    UnsupportedShellError,
)
from .results import AbortReason, ExitCode, RunReport, RunState, StepResult, StepStatus

# Public domain exports keep imports explicit across layers.
__all__ = [
    "AbortReason",
    "ActionDefinition",
    "ActionInvocation",
    "ActionReference",
    "Cancelled",
    "DefinitionError",
    "ExitCode",
    "InlineCommand",
    "InputSpec",
    "MissingRequiredInput",
    "ResolutionError",
    "RunReport",
    "RunState",
    "RunnerError",
    "SettingsError",
    "ShellKind",
    "Step",
    "StepExecutionError",
    "StepResult",
    "StepStatus",
    "StepTimeoutError",
    "TemplateResolutionError",
    "UnpinnedReferenceError",
    "UnsupportedShellError",
]
