from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TextIO

from composite_runner.observability.logging import LogMessage
from composite_runner.ports.log_sink import LogSink


class StdoutLogSink(LogSink):
    # One JSON object per line on stdout (or any text stream given in tests).
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, message: LogMessage) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(_dumps(message) + "\n")

    def close(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.flush()


class JsonlLogSink(LogSink):
    # File-backed structured log sink; each record is flushed as it is written.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        self._file.write(_dumps(message) + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class NullLogSink(LogSink):
    def emit(self, message: LogMessage) -> None:
        return None

    def close(self) -> None:
        return None


class MemoryLogSink(LogSink):
    # Keeps records in order; used where callers want to inspect what was logged.
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        return None


def build_log_sink(kind: str, path: str | None = None) -> LogSink:
    if kind == "stdout":
        return StdoutLogSink()
    if kind == "jsonl":
        if not path:
            raise ValueError("jsonl log sink requires a path")
        return JsonlLogSink(Path(path))
    if kind == "none":
        return NullLogSink()
    raise ValueError(f"Unknown log sink: {kind}")


def log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level.value,
        "message": message.message,
        "run_id": message.run_id,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }


def _dumps(message: LogMessage) -> str:
    return json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
