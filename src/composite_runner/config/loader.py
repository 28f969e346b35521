from __future__ import annotations

import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from composite_runner.config.models import ActionDecl, StepDecl
from composite_runner.domain.definition import (
    ActionDefinition,
    ActionInvocation,
    ActionReference,
    InlineCommand,
    InputSpec,
    ShellKind,
    Step,
)
from composite_runner.domain.errors import DefinitionError, UnsupportedShellError

SUPPORTED_MODES = {"composite"}

# "uses: owner/repo@<sha> # v4"; YAML drops comments, so the tag is read from the raw text.
_USES_COMMENT = re.compile(r"""^\s*-?\s*uses:\s*["']?([^\s"'#]+)["']?\s*#\s*(\S+)""", re.MULTILINE)


def load_yaml(path: Path, *, error: type[ValueError] = DefinitionError) -> dict[str, object]:
    # Raw YAML loader; returns a mapping for model validation.
    text = read_text(path, error=error)
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise error(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise error(f"{path}: root must be a mapping")
    return raw


def read_text(path: Path, *, error: type[ValueError] = DefinitionError) -> str:
    # Undecodable bytes are a malformed file, not a runtime failure.
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise error(f"{path}: not valid UTF-8: {exc}") from exc


def load_definition(path: Path) -> ActionDefinition:
    text = read_text(path)
    return parse_definition(text, source=str(path))


def parse_definition(text: str, *, source: str = "<string>") -> ActionDefinition:
    # Fail fast: every problem surfaces here, before any step can run.
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DefinitionError(f"{source}: invalid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise DefinitionError(f"{source}: definition root must be a mapping")
    return build_definition(raw, source=source, version_tags=_version_comments(text))


def build_definition(
    raw: dict[str, object],
    *,
    source: str = "<mapping>",
    version_tags: dict[str, str] | None = None,
) -> ActionDefinition:
    try:
        decl = ActionDecl.model_validate(raw)
    except ValidationError as exc:
        raise DefinitionError(f"{source}: {exc}") from exc

    if decl.runs.using not in SUPPORTED_MODES:
        raise DefinitionError(
            f"{source}: runs.using must be one of {sorted(SUPPORTED_MODES)}, got '{decl.runs.using}'"
        )

    inputs = {
        name: InputSpec(
            name=name,
            description=item.description,
            required=item.required,
            default=item.default,
        )
        for name, item in decl.inputs.items()
    }
    tags = version_tags or {}
    steps = tuple(_build_step(item, index, tags, source) for index, item in enumerate(decl.runs.steps))
    return ActionDefinition(
        name=decl.name,
        description=decl.description,
        inputs=inputs,
        steps=steps,
        using=decl.runs.using,
    )


def _build_step(decl: StepDecl, index: int, tags: dict[str, str], source: str) -> Step:
    name = decl.display_name()
    if decl.run is not None:
        if decl.shell is None:
            raise DefinitionError(f"{source}: runs.steps[{index}] ('{name}') requires 'shell'")
        try:
            shell = ShellKind.parse(decl.shell)
        except ValueError as exc:
            raise UnsupportedShellError(decl.shell, step=name) from exc
        body: InlineCommand | ActionInvocation = InlineCommand(decl.run)
    else:
        assert decl.uses is not None
        shell = None
        try:
            reference = ActionReference.parse(decl.uses, version_tag=decl.version or tags.get(decl.uses.strip()))
        except ValueError as exc:
            raise DefinitionError(f"{source}: runs.steps[{index}] ('{name}'): {exc}") from exc
        body = ActionInvocation(reference=reference, with_inputs=decl.with_strings())
    return Step(
        name=name,
        body=body,
        shell=shell,
        working_directory=decl.working_directory,
        env=decl.env_strings(),
        timeout_minutes=decl.timeout_minutes,
    )


def _version_comments(text: str) -> dict[str, str]:
    return {match.group(1): match.group(2) for match in _USES_COMMENT.finditer(text)}
