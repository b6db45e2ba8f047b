"""Configuration management for containerflow.

Settings are read from environment variables (and an optional ``.env``
file) and organised into logical groups.

Usage:
    from containerflow.config import settings

    # Grouped access
    settings.docker.docker_stop_timeout
    settings.logging.log_level

    # Flat access
    settings.docker_host_override
"""

from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .docker import DockerConfig
from .logging import LoggingConfig

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("console", "json")


class Settings(BaseSettings):
    """Library settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Docker Configuration
    # DOCKER_HOST is shared with the docker CLI; when unset the SDK's
    # from_env() discovery is used.
    docker_host: Optional[str] = Field(default=None)
    docker_host_override: Optional[str] = Field(
        default=None,
        description="Host name reported by Info() instead of the daemon host",
    )
    docker_client_timeout: int = Field(default=60, ge=1, le=600)
    docker_stop_timeout: int = Field(
        default=10, ge=0, le=300, description="Grace period before SIGKILL on terminate"
    )
    pull_missing_images: bool = Field(default=True)
    container_labels: Dict[str, str] = Field(default_factory=dict)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(_LOG_FORMATS)}")
        return fmt

    @property
    def docker(self) -> DockerConfig:
        """Access Docker configuration group."""
        return DockerConfig(
            docker_host=self.docker_host,
            docker_host_override=self.docker_host_override,
            docker_client_timeout=self.docker_client_timeout,
            docker_stop_timeout=self.docker_stop_timeout,
            pull_missing_images=self.pull_missing_images,
            container_labels=self.container_labels,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(log_level=self.log_level, log_format=self.log_format)


settings = Settings()
