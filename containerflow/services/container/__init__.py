"""Docker runtime client.

This package adapts the docker SDK to the pipeline's runtime capability:
- client.py: Docker client factory and the runtime client
- utils.py: Shared helpers for Docker operations
"""

from .client import DockerClientFactory, DockerRuntimeClient, LazyDockerRuntimeClient
from .utils import host_from_base_url, run_in_executor, split_image_reference

__all__ = [
    "DockerClientFactory",
    "DockerRuntimeClient",
    "LazyDockerRuntimeClient",
    "host_from_base_url",
    "run_in_executor",
    "split_image_reference",
]
