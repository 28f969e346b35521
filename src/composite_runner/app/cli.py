from __future__ import annotations

import argparse
import json
import os
import signal
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from composite_runner.adapters.log_sinks import StdoutLogSink
from composite_runner.adapters.report import render_text, report_to_dict, write_json_report
from composite_runner.app.composition_root import build_runtime, run_action
from composite_runner.config.loader import load_definition
from composite_runner.config.settings import LoggingSettings, RunnerSettings, load_settings
from composite_runner.domain.errors import DefinitionError, ResolutionError, SettingsError
from composite_runner.domain.results import ExitCode
from composite_runner.kernel.cancellation import CancellationToken


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="composite-runner", description="Run a composite action definition")
    parser.add_argument("--definition", required=True, help="Path to the action definition YAML")
    parser.add_argument(
        "--input",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Caller-supplied input; may be repeated",
    )
    parser.add_argument("--workdir", help="Base working directory (default: current directory)")
    parser.add_argument("--config", help="Path to runner settings YAML")
    parser.add_argument(
        "--fail-fast",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Abort remaining steps after the first failed step",
    )
    parser.add_argument("--timeout-minutes", type=float, help="Default per-step timeout")
    parser.add_argument("--log", choices=["stdout", "jsonl", "none"], help="Override log sink")
    parser.add_argument("--log-path", help="Log file path (selects the jsonl sink)")
    parser.add_argument("--report", help="Write the JSON run report to this path")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Report format on stdout")
    return parser


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    # Caller passes argv for testability.
    return build_parser().parse_args(argv)


def parse_inputs(pairs: Sequence[str]) -> dict[str, str]:
    # Values are opaque strings; only the first '=' separates name from value.
    inputs: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise SettingsError(f"--input expects NAME=VALUE, got '{pair}'")
        inputs[name.strip()] = value
    return inputs


def apply_cli_overrides(settings: RunnerSettings, args: argparse.Namespace) -> None:
    # CLI flags take precedence over the settings file.
    if args.fail_fast is not None:
        settings.fail_fast = args.fail_fast
    if args.timeout_minutes is not None:
        if args.timeout_minutes <= 0:
            raise SettingsError("--timeout-minutes must be positive")
        settings.default_timeout_minutes = args.timeout_minutes
    if args.log is None and args.log_path is None:
        return
    if args.log_path is not None and args.log not in (None, "jsonl"):
        raise SettingsError(f"--log-path only applies to the jsonl sink, not '{args.log}'")
    if args.log_path is not None:
        settings.logging = LoggingSettings(sink="jsonl", path=args.log_path)
    elif args.log == "jsonl":
        if not settings.logging.path:
            raise SettingsError("--log jsonl requires --log-path or logging.path in settings")
        settings.logging = LoggingSettings(sink="jsonl", path=settings.logging.path)
    else:
        settings.logging = LoggingSettings(sink=args.log)


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    # SIGINT requests cancellation; the engine stops at the next step boundary.
    def _handler(signum: int, frame: object) -> None:
        token.cancel("interrupted")

    try:
        previous = signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # Not the main thread; cancellation must then come from the caller.
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(Path(args.config) if args.config else None)
        apply_cli_overrides(settings, args)
        supplied = parse_inputs(args.input)
        definition = load_definition(Path(args.definition))
    except (DefinitionError, SettingsError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return int(ExitCode.DEFINITION_ERROR)

    workdir = Path(args.workdir) if args.workdir else Path.cwd()
    # A JSON report owns stdout; stdout log lines move to stderr so the report stays parseable.
    log_sink = StdoutLogSink(sys.stderr) if args.format == "json" and settings.logging.sink == "stdout" else None
    runtime = build_runtime(settings, working_directory=workdir.resolve(), env=dict(os.environ), log_sink=log_sink)
    token = CancellationToken()
    try:
        with cancel_on_interrupt(token):
            report = run_action(definition, supplied, runtime, cancel_token=token)
    except ResolutionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return int(ExitCode.DEFINITION_ERROR)
    finally:
        runtime.close()

    if args.report:
        write_json_report(Path(args.report), report)
    if args.format == "json":
        print(json.dumps(report_to_dict(report), indent=2, ensure_ascii=False))
    else:
        sys.stdout.write(render_text(report))
    return int(report.exit_code)
