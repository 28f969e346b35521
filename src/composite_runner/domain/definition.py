from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

# Full SHA-1 (git) or SHA-256 digests are the only refs treated as immutable.
_CONTENT_HASH = re.compile(r"^(?:[0-9a-fA-F]{40}|[0-9a-fA-F]{64})$")


class ShellKind(str, Enum):
    # Each value maps to an interpreter command line; "{0}" is the script path.
    BASH = "bash"
    SH = "sh"
    PWSH = "pwsh"
    POWERSHELL = "powershell"
    CMD = "cmd"
    PYTHON = "python"

    @property
    def command_template(self) -> tuple[str, ...]:
        return _SHELL_TEMPLATES[self]

    @property
    def script_suffix(self) -> str:
        return _SHELL_SUFFIXES[self]

    @property
    def posix(self) -> bool:
        return self in {ShellKind.BASH, ShellKind.SH}

    @classmethod
    def parse(cls, value: str) -> ShellKind:
        # Raises ValueError for unknown names; loader converts it to UnsupportedShellError.
        return cls(value.strip().lower())


_SHELL_TEMPLATES: dict[ShellKind, tuple[str, ...]] = {
    ShellKind.BASH: ("bash", "--noprofile", "--norc", "-eo", "pipefail", "{0}"),
    ShellKind.SH: ("sh", "-e", "{0}"),
    ShellKind.PWSH: ("pwsh", "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", ". '{0}'"),
    ShellKind.POWERSHELL: ("powershell", "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", ". '{0}'"),
    ShellKind.CMD: ("cmd", "/D", "/E:ON", "/V:OFF", "/S", "/C", 'CALL "{0}"'),
    ShellKind.PYTHON: ("python", "{0}"),
}

_SHELL_SUFFIXES: dict[ShellKind, str] = {
    ShellKind.BASH: ".sh",
    ShellKind.SH: ".sh",
    ShellKind.PWSH: ".ps1",
    ShellKind.POWERSHELL: ".ps1",
    ShellKind.CMD: ".cmd",
    ShellKind.PYTHON: ".py",
}


@dataclass(frozen=True, slots=True)
class InputSpec:
    name: str
    description: str = ""
    required: bool = False
    default: str | None = None


@dataclass(frozen=True, slots=True)
class ActionReference:
    # "owner/repo@ref" plus the optional human-readable tag (e.g. "v4").
    name: str
    ref: str
    version_tag: str | None = None

    @property
    def is_pinned(self) -> bool:
        return bool(_CONTENT_HASH.match(self.ref))

    @classmethod
    def parse(cls, text: str, *, version_tag: str | None = None) -> ActionReference:
        raw = text.strip()
        name, sep, ref = raw.rpartition("@")
        if not sep or not name or not ref:
            raise ValueError(f"Action reference must look like 'name@ref': {text!r}")
        return cls(name=name, ref=ref, version_tag=version_tag)

    def __str__(self) -> str:
        base = f"{self.name}@{self.ref}"
        return f"{base} ({self.version_tag})" if self.version_tag else base


@dataclass(frozen=True, slots=True)
class InlineCommand:
    text: str


@dataclass(frozen=True, slots=True)
class ActionInvocation:
    reference: ActionReference
    with_inputs: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "with_inputs", MappingProxyType(dict(self.with_inputs)))


@dataclass(frozen=True, slots=True)
class Step:
    # A step carries exactly one body: an inline command or an action invocation.
    name: str
    body: InlineCommand | ActionInvocation
    shell: ShellKind | None = None
    working_directory: str | None = None
    env: Mapping[str, str] = field(default_factory=dict)
    timeout_minutes: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.body, InlineCommand) and self.shell is None:
            raise ValueError(f"Step '{self.name}' runs a command and needs a shell")
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


@dataclass(frozen=True, slots=True)
class ActionDefinition:
    name: str
    description: str
    inputs: Mapping[str, InputSpec]
    steps: tuple[Step, ...]
    using: str = "composite"

    def __post_init__(self) -> None:
        # Mappings are frozen so a loaded definition cannot be edited in place.
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))
