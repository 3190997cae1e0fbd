"""Configuration management for rexec.

Loads settings from a YAML configuration file with environment variable
overrides (``REXEC_`` prefix, ``__`` between nested keys). Supports .env
files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from rexec.errors import ConfigurationError
from rexec.transport.connection import DEFAULT_ADDRESS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/rexec.yaml")


class ServerConfig(BaseModel):
    address: str = Field(default=DEFAULT_ADDRESS, description="host:port to listen on")
    shell: str = Field(default="sh", description="Shell used to run command lines")
    commands_file: Path | None = Field(default=None)
    reject_duplicate_commands: bool = Field(default=False)


class ClientConfig(BaseModel):
    address: str = Field(default=DEFAULT_ADDRESS, description="host:port to connect to")
    connect_timeout: float = Field(default=10.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for rexec.

    Priority: env vars > .env file > YAML file (constructor values) > defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="REXEC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + environment variables.

    A missing file falls back to defaults (with a warning if the path was
    given explicitly).

    Raises:
        ConfigurationError: If the file cannot be parsed or holds
            invalid values.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict = {}
    if path.exists():
        try:
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")
        logger.info("Loaded configuration from %s", path)
    elif config_path:
        logger.warning("Config file %s not found, using defaults + env vars", path)
    else:
        logger.debug("No config file at %s, using defaults + env vars", path)

    try:
        return Settings(**yaml_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e
