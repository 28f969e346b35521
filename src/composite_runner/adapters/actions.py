from __future__ import annotations

import os
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from composite_runner.domain.definition import ActionReference
from composite_runner.domain.errors import UnpinnedReferenceError
from composite_runner.ports.action_invoker import ActionInvoker, InvocationContext
from composite_runner.ports.shell import CommandOutcome, ShellExecutor


class ActionHandler(Protocol):
    # A handler runs one kind of action; the invoker has already checked the pin.
    def __call__(
        self,
        reference: ActionReference,
        inputs: Mapping[str, str],
        ctx: InvocationContext,
    ) -> CommandOutcome:
        raise NotImplementedError("ActionHandler protocol has no implementation")


@dataclass
class ActionRegistry:
    # Maps action names ("owner/repo") to handlers; later registrations override earlier ones.
    _handlers: dict[str, ActionHandler] = field(default_factory=dict)

    def register(self, name: str, handler: ActionHandler) -> None:
        self._handlers[name.lower()] = handler

    def get(self, name: str) -> ActionHandler | None:
        return self._handlers.get(name.lower())

    def names(self) -> list[str]:
        return sorted(self._handlers)


@dataclass(frozen=True)
class PinnedActionInvoker(ActionInvoker):
    # Rejects unpinned references, then dispatches to a registered handler or the fallback.
    registry: ActionRegistry
    fallback: ActionHandler

    def invoke(
        self,
        reference: ActionReference,
        inputs: Mapping[str, str],
        ctx: InvocationContext,
    ) -> CommandOutcome:
        require_pinned(reference)
        handler = self.registry.get(reference.name)
        if handler is None:
            handler = self.fallback
        return handler(reference, inputs, ctx)


def require_pinned(reference: ActionReference) -> None:
    # A mutable tag or branch can move under the caller; only a content hash is accepted.
    if not reference.is_pinned:
        raise UnpinnedReferenceError(str(reference))


@dataclass(frozen=True, slots=True)
class RuntimeSpec:
    # How to recognise an installed runtime: the version input name and the probe command.
    action: str
    version_input: str
    probe: tuple[str, ...]
    default_version: str | None = None


# Runtimes the setup action knows how to probe; names match the public setup actions.
KNOWN_RUNTIMES: dict[str, RuntimeSpec] = {
    "actions/setup-node": RuntimeSpec("actions/setup-node", "node-version", ("node", "--version")),
    "actions/setup-python": RuntimeSpec("actions/setup-python", "python-version", ("python", "--version")),
    "actions/setup-go": RuntimeSpec("actions/setup-go", "go-version", ("go", "version")),
    "actions/setup-java": RuntimeSpec("actions/setup-java", "java-version", ("java", "-version")),
}

_VERSION = re.compile(r"(\d+(?:\.\d+)*)")


class SetupRuntimeAction:
    """Ensures a language runtime at the requested version is available.

    The installed runtime is probed first; when its reported version starts with the
    requested one nothing is installed. Otherwise the configured install command runs
    with ``{version}`` replaced. Without an install command the step fails.
    """

    def __init__(
        self,
        spec: RuntimeSpec,
        executor: ShellExecutor,
        *,
        install_command: Sequence[str] | None = None,
    ) -> None:
        self._spec = spec
        self._executor = executor
        self._install_command = tuple(install_command) if install_command else None

    def __call__(
        self,
        reference: ActionReference,
        inputs: Mapping[str, str],
        ctx: InvocationContext,
    ) -> CommandOutcome:
        requested = (inputs.get(self._spec.version_input) or self._spec.default_version or "").strip()
        if not requested:
            return CommandOutcome(
                exit_code=1,
                stdout="",
                stderr=f"{reference.name}: input '{self._spec.version_input}' is required\n",
            )

        probe = self._executor.run_argv(self._spec.probe, cwd=ctx.cwd, env=ctx.env, timeout=ctx.timeout)
        found = installed_version(probe)
        if found is not None and version_matches(found, requested):
            return CommandOutcome(
                exit_code=0,
                stdout=f"{self._spec.probe[0]} {found} satisfies requested version {requested}\n",
                stderr="",
            )

        if self._install_command is None:
            have = found or "not installed"
            return CommandOutcome(
                exit_code=1,
                stdout="",
                stderr=(
                    f"{reference.name}: requested {self._spec.probe[0]} {requested}, found {have}; "
                    f"no install command configured for {self._spec.action}\n"
                ),
            )

        argv = [part.replace("{version}", requested) for part in self._install_command]
        return self._executor.run_argv(argv, cwd=ctx.cwd, env=ctx.env, timeout=ctx.timeout)


def installed_version(probe: CommandOutcome) -> str | None:
    # Some tools (java) print their version on stderr.
    if probe.exit_code != 0:
        return None
    match = _VERSION.search(probe.stdout) or _VERSION.search(probe.stderr)
    return match.group(1) if match else None


def version_matches(found: str, requested: str) -> bool:
    # "18" matches 18.19.0; "3.11" matches 3.11.9 but not 3.1.x.
    wanted = requested.lstrip("vV").split(".")
    have = found.lstrip("vV").split(".")
    if wanted and wanted[-1] in {"x", "*"}:
        wanted = wanted[:-1]
    return have[: len(wanted)] == wanted


class HostPassthroughInvoker:
    # Hands an action to the host's resolver command; inputs travel as INPUT_<NAME> variables.
    def __init__(self, executor: ShellExecutor, command: Sequence[str] | None = None) -> None:
        self._executor = executor
        self._command = tuple(command) if command else None

    def __call__(
        self,
        reference: ActionReference,
        inputs: Mapping[str, str],
        ctx: InvocationContext,
    ) -> CommandOutcome:
        if self._command is None:
            return CommandOutcome(
                exit_code=1,
                stdout="",
                stderr=f"no host action resolver configured for {reference}\n",
            )
        argv = [part.replace("{action}", reference.name).replace("{ref}", reference.ref) for part in self._command]
        return self._executor.run_argv(argv, cwd=ctx.cwd, env=input_environment(inputs, ctx.env), timeout=ctx.timeout)


def input_environment(inputs: Mapping[str, str], base: Mapping[str, str] | None) -> dict[str, str]:
    env = dict(os.environ) if base is None else dict(base)
    for name, value in inputs.items():
        env[f"INPUT_{name.replace(' ', '_').upper()}"] = value
    return env


def build_invoker(
    executor: ShellExecutor,
    *,
    runtimes: Mapping[str, Sequence[str]] | None = None,
    host_action_command: Sequence[str] | None = None,
) -> PinnedActionInvoker:
    # Registers the runtime setup actions and routes everything else to the host.
    install = {name.lower(): command for name, command in (runtimes or {}).items()}
    registry = ActionRegistry()
    for name, spec in KNOWN_RUNTIMES.items():
        registry.register(name, SetupRuntimeAction(spec, executor, install_command=install.get(name)))
    return PinnedActionInvoker(registry=registry, fallback=HostPassthroughInvoker(executor, host_action_command))
