from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from composite_runner.domain.results import RunReport, StepResult


def report_to_dict(report: RunReport) -> dict[str, object]:
    # Stable key order; captured output is kept verbatim for diagnosis.
    return {
        "definition": report.definition,
        "state": report.state.value,
        "reason": None if report.reason is None else report.reason.value,
        "success": report.success,
        "exit_code": int(report.exit_code),
        "error": None if report.error is None else _error_dict(report.error),
        "steps": [_step_to_dict(result) for result in report.results],
    }


def write_json_report(path: Path, report: RunReport) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(report_to_dict(report), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def render_text(report: RunReport) -> str:
    lines = [f"== {report.definition}: {_headline(report)}"]
    for result in report.results:
        code = "timeout" if result.exit_code is None else str(result.exit_code)
        lines.append(
            f"-- [{result.index}] {result.name}: {result.status.value} (exit {code}, {result.duration_ms:.0f} ms)"
        )
        if result.stdout:
            lines.append(result.stdout.rstrip("\n"))
        if result.stderr:
            lines.append("stderr:")
            lines.append(result.stderr.rstrip("\n"))
        if result.error is not None:
            lines.append(f"error: {result.error}")
    if report.error is not None:
        lines.append(f"error: {type(report.error).__name__}: {report.error}")
    return "\n".join(lines) + "\n"


def _headline(report: RunReport) -> str:
    if report.reason is not None:
        return f"{report.state.value} ({report.reason.value})"
    return "succeeded" if report.success else "completed with failures"


def _step_to_dict(result: StepResult) -> dict[str, object]:
    return {
        "index": result.index,
        "name": result.name,
        "status": result.status.value,
        "exit_code": result.exit_code,
        "started_at": _format_dt(result.started_at),
        "duration_ms": result.duration_ms,
        "stdout": result.stdout,
        "stderr": result.stderr,
        "error": None if result.error is None else _error_dict(result.error),
    }


def _error_dict(error: Exception) -> dict[str, object]:
    return {"type": type(error).__name__, "message": str(error)}


def _format_dt(value: datetime) -> str:
    # RFC3339 UTC with Z suffix.
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
