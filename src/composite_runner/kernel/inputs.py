from __future__ import annotations

from collections.abc import Mapping

from composite_runner.domain.definition import InputSpec
from composite_runner.domain.errors import MissingRequiredInput


def resolve(declared: Mapping[str, InputSpec], supplied: Mapping[str, str]) -> dict[str, str]:
    # Caller value wins, then the declared default; required inputs without either fail.
    # Names supplied but not declared are ignored so callers may run ahead of the definition.
    resolved: dict[str, str] = {}
    for name, spec in declared.items():
        if name in supplied:
            resolved[name] = supplied[name]
        elif spec.default is not None:
            resolved[name] = spec.default
        elif spec.required:
            raise MissingRequiredInput(name)
    return resolved
