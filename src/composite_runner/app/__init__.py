from .cli import apply_cli_overrides, build_parser, parse_args, parse_inputs, run
from .composition_root import AppRuntime, build_runtime, run_action

__all__ = [
    "AppRuntime",
    "apply_cli_overrides",
    "build_parser",
    "build_runtime",
    "parse_args",
    "parse_inputs",
    "run",
    "run_action",
]
