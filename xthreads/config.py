"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from xthreads.exceptions import ConfigError


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


class ThreadConfig(BaseSettings):
    """Configuration for thread reconstruction."""

    # Reconstruction behaviour
    backfill_conversations: bool = True
    trim_reply_mentions: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE

    # HTTP API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    model_config = {
        "env_prefix": "XTHREADS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


def load_config(**overrides) -> ThreadConfig:
    """
    Build a ThreadConfig from the environment plus explicit overrides.

    Raises:
        ConfigError: If a setting fails validation
    """
    try:
        return ThreadConfig(**overrides)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
