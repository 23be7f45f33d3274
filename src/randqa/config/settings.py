"""Configuration settings and loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from randqa.errors import ConfigurationError, ErrorContext
from randqa.logs import DetailedLogStrategy, LogStrategy, SimpleLogStrategy


class EngineSettings(BaseSettings):
    """Defaults for a randomized test run.

    Every field can be overridden with a ``RANDQA_`` environment variable,
    e.g. ``RANDQA_SEED=42`` or ``RANDQA_LOG_STRATEGY=detailed``.
    """

    model_config = SettingsConfigDict(
        env_prefix="RANDQA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    steps: int = Field(default=1000, gt=0, description="Number of counted steps per run")
    seed: int = Field(default=0, description="Seed of the shared random generator")
    log_strategy: Literal["simple", "detailed"] = "simple"
    log_buffer: int = Field(default=20, ge=0, description="Entries kept (per object for 'detailed')")
    log_level: str = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = str(v).upper()
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid:
            raise ValueError(f"Invalid log level: {v}. Valid: {sorted(valid)}")
        return level

    def build_log_strategy(self) -> LogStrategy:
        """Instantiate the configured log strategy."""
        if self.log_strategy == "detailed":
            return DetailedLogStrategy(self.log_buffer)
        return SimpleLogStrategy(self.log_buffer)


def load_settings(config_path: str | Path | None = None, **overrides: Any) -> EngineSettings:
    """Load settings from a YAML file, the environment and explicit overrides.

    Priority: overrides > env vars > config file > defaults. Overrides
    whose value is None are ignored, so CLI options can be passed through
    unconditionally.
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                context=ErrorContext(extra={"path": str(config_path)}),
            )
        with open(config_path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {config_path}",
                context=ErrorContext(extra={"path": str(config_path)}),
            )
        config_data.update(loaded)

    config_data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        # Init kwargs beat env vars in pydantic-settings, so drop file values
        # that the environment overrides.
        env = EngineSettings()
        for key in env.model_fields_set:
            if key not in overrides or overrides[key] is None:
                config_data.pop(key, None)
        return EngineSettings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            cause=e,
            context=ErrorContext(extra={"errors": e.errors()}),
        ) from e
