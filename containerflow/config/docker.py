"""Docker runtime configuration."""

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Docker daemon connection and container defaults."""

    docker_host: Optional[str] = Field(default=None)
    docker_host_override: Optional[str] = Field(default=None)
    docker_client_timeout: int = Field(default=60, ge=1, le=600)
    docker_stop_timeout: int = Field(default=10, ge=0, le=300)
    pull_missing_images: bool = Field(default=True)
    container_labels: Dict[str, str] = Field(default_factory=dict)

    class Config:
        env_prefix = ""
        extra = "ignore"
