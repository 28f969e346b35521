from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Models map the action definition YAML to typed structures; key names follow the file format.

Scalar = str | int | float | bool


def _scalar_to_str(value: Scalar) -> str:
    # YAML booleans are written the way the file format spells them.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class InputDecl(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    description: str = ""
    required: bool = False
    default: Scalar | None = None
    deprecation_message: str | None = Field(default=None, alias="deprecationMessage")

    @field_validator("default", mode="after")
    @classmethod
    def _stringify_default(cls, value: Scalar | None) -> str | None:
        return None if value is None else _scalar_to_str(value)


class StepDecl(BaseModel):
    # One entry of runs.steps; exactly one of run/uses is allowed.
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    name: str | None = None
    id: str | None = None
    shell: str | None = None
    working_directory: str | None = Field(default=None, alias="working-directory")
    run: str | None = None
    uses: str | None = None
    version: str | None = None
    with_: dict[str, Scalar] = Field(default_factory=dict, alias="with")
    env: dict[str, Scalar] = Field(default_factory=dict)
    timeout_minutes: float | None = Field(default=None, alias="timeout-minutes", gt=0)

    @model_validator(mode="after")
    def _exactly_one_body(self) -> StepDecl:
        if (self.run is None) == (self.uses is None):
            raise ValueError("step must define exactly one of 'run' or 'uses'")
        if self.uses is not None and self.shell is not None:
            raise ValueError("'shell' is only valid on 'run' steps")
        if self.run is not None and self.with_:
            raise ValueError("'with' is only valid on 'uses' steps")
        return self

    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.id:
            return self.id
        if self.run is not None:
            first = self.run.strip().splitlines()
            return f"Run {first[0]}" if first else "Run"
        return f"Run {self.uses}"

    def with_strings(self) -> dict[str, str]:
        return {key: _scalar_to_str(value) for key, value in self.with_.items()}

    def env_strings(self) -> dict[str, str]:
        return {key: _scalar_to_str(value) for key, value in self.env.items()}


class RunsDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")
    using: str
    steps: list[StepDecl] = Field(default_factory=list)


class ActionDecl(BaseModel):
    # Top-level typed view of an action definition file.
    model_config = ConfigDict(extra="forbid")
    name: str
    description: str = ""
    author: str | None = None
    branding: dict[str, Any] | None = None
    inputs: dict[str, InputDecl] = Field(default_factory=dict)
    runs: RunsDecl

    @field_validator("inputs", mode="before")
    @classmethod
    def _inputs_default(cls, value: object) -> object:
        # "inputs:" with no entries parses as None.
        return {} if value is None else value
