from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from composite_runner.adapters.log_sinks import (
    JsonlLogSink,
    NullLogSink,
    StdoutLogSink,
    build_log_sink,
)
from composite_runner.observability.logging import LogLevel, LogMessage, info, warning


def test_stdout_sink_writes_one_json_line() -> None:
    stream = io.StringIO()
    StdoutLogSink(stream).emit(info("step.start", run_id="r1", step="A", index=0))
    record = json.loads(stream.getvalue())
    assert record["level"] == "info"
    assert record["run_id"] == "r1"
    assert record["message"] == "step.start"
    assert record["fields"] == {"step": "A", "index": 0}
    assert record["timestamp"].endswith("Z")


def test_jsonl_sink_appends(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "run.jsonl"
    sink = JsonlLogSink(path)
    sink.emit(info("run.start"))
    sink.emit(info("run.finish", success=True))
    sink.close()
    sink.close()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["run.start", "run.finish"]


def test_build_log_sink() -> None:
    assert isinstance(build_log_sink("stdout"), StdoutLogSink)
    assert isinstance(build_log_sink("none"), NullLogSink)
    with pytest.raises(ValueError):
        build_log_sink("jsonl")
    with pytest.raises(ValueError):
        build_log_sink("syslog")


def test_log_message_requires_level_and_message() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="", message="x")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        LogMessage(level=LogLevel.INFO, message="")


def test_level_names_are_normalised() -> None:
    assert LogMessage(level="warning", message="x").level is LogLevel.WARNING  # type: ignore[arg-type]
    assert warning("step.skipped").level is LogLevel.WARNING
    assert info("run.start").run_id is None
