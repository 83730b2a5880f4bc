"""Pydantic configuration schema for YAML input."""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfoNotFoundError

import pendulum
from pendulum.tz.exceptions import InvalidTimezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_logs: bool = True

    model_config = ConfigDict(extra="forbid")


class RepositoryConfig(BaseModel):
    """Where candidate documents live; ``path`` unset means in-memory."""

    path: str | None = None

    model_config = ConfigDict(extra="forbid")


class ClockConfig(BaseModel):
    timezone: str = "UTC"

    model_config = ConfigDict(extra="forbid")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except (InvalidTimezone, ZoneInfoNotFoundError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {"clock": self.clock.model_dump()}
        if self.repository.path:
            settings["repository"] = self.repository.model_dump(exclude_none=True)
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping")
    return AppConfig.model_validate(raw)
