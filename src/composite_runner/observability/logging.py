from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class LogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LogMessage:
    # One run lifecycle event; run_id ties every record to the run that produced it.
    level: LogLevel
    message: str
    run_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.message:
            raise ValueError("LogMessage requires a non-empty message")
        # Accepts the plain level name; anything else is rejected here.
        object.__setattr__(self, "level", LogLevel(self.level))


def info(message: str, *, run_id: str | None = None, **fields: object) -> LogMessage:
    return LogMessage(level=LogLevel.INFO, message=message, run_id=run_id, fields=fields)


def warning(message: str, *, run_id: str | None = None, **fields: object) -> LogMessage:
    return LogMessage(level=LogLevel.WARNING, message=message, run_id=run_id, fields=fields)


def error(message: str, *, run_id: str | None = None, **fields: object) -> LogMessage:
    return LogMessage(level=LogLevel.ERROR, message=message, run_id=run_id, fields=fields)
