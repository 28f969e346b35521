from __future__ import annotations

from typing import Protocol, runtime_checkable

from composite_runner.observability.logging import LogMessage


# LogSink receives structured log records; adapters decide the output format.
@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        """Consume one LogMessage."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Flush and release resources held by the sink."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")
