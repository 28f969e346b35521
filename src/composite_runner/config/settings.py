from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from composite_runner.config.loader import load_yaml
from composite_runner.domain.errors import SettingsError

# Runner settings are optional; every field has a default.


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sink: Literal["stdout", "jsonl", "none"] = "stdout"
    path: str | None = None

    @model_validator(mode="after")
    def _require_path(self) -> LoggingSettings:
        # A jsonl sink without a path would silently drop logs.
        if self.sink == "jsonl" and not self.path:
            raise ValueError("logging.path is required when sink is 'jsonl'")
        return self


class RuntimeInstallSettings(BaseModel):
    # Install command for a runtime setup action; "{version}" is replaced with the requested version.
    model_config = ConfigDict(extra="forbid")
    install_command: list[str] = Field(min_length=1)


class RunnerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    fail_fast: bool = True
    default_timeout_minutes: float | None = Field(default=None, gt=0)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    runtimes: dict[str, RuntimeInstallSettings] = Field(default_factory=dict)
    # Command used to hand non-builtin actions to the host; "{action}" and "{ref}" are substituted.
    host_action_command: list[str] | None = None


def load_settings(path: Path | None) -> RunnerSettings:
    if path is None:
        return RunnerSettings()
    raw = load_yaml(path, error=SettingsError)
    try:
        return RunnerSettings.model_validate(raw)
    except ValidationError as exc:
        raise SettingsError(f"{path}: {exc}") from exc
