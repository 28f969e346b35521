from __future__ import annotations

import re
from collections.abc import Mapping

from composite_runner.domain.errors import TemplateResolutionError

# ${{ <expression> }}; only the "inputs.<name>" form is evaluated.
_PLACEHOLDER = re.compile(r"\$\{\{\s*(.*?)\s*\}\}")
_INPUT_REF = re.compile(r"^inputs\.([A-Za-z_][A-Za-z0-9_-]*)$")


def expand(text: str, inputs: Mapping[str, str], *, step: str | None = None) -> str:
    # Pure text substitution; unknown expressions or absent inputs are errors.
    def _replace(match: re.Match[str]) -> str:
        expression = match.group(1)
        ref = _INPUT_REF.match(expression)
        if ref is None or ref.group(1) not in inputs:
            raise TemplateResolutionError(expression, step=step)
        return inputs[ref.group(1)]

    return _PLACEHOLDER.sub(_replace, text)


def expand_mapping(
    values: Mapping[str, str], inputs: Mapping[str, str], *, step: str | None = None
) -> dict[str, str]:
    return {key: expand(value, inputs, step=step) for key, value in values.items()}
