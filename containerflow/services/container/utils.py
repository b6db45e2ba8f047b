"""Shared utilities for Docker container operations."""

import asyncio
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from docker.utils import parse_repository_tag


async def run_in_executor(func, *args):
    """
    Run a blocking function in the default thread pool executor.

    Args:
        func: Blocking function to run
        *args: Arguments to pass to the function

    Returns:
        Result of the function
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


def split_image_reference(image: str) -> Tuple[str, str]:
    """Split an image reference into repository and tag (or digest).

    Untagged references resolve to ``latest``.
    """
    repository, tag = parse_repository_tag(image)
    return repository, tag or "latest"


def host_from_base_url(base_url: Optional[str]) -> str:
    """Derive the host that published ports are reachable on.

    Local sockets (unix, npipe) resolve to ``localhost``; tcp/http(s)
    endpoints to their hostname.
    """
    if not base_url:
        return "localhost"
    parsed = urlparse(base_url)
    if parsed.scheme in ("unix", "npipe", "http+unix") or parsed.scheme.startswith("http+docker"):
        return "localhost"
    return parsed.hostname or "localhost"


def port_bindings(exposed_ports) -> Dict[str, None]:
    """Publish every exposed port on a random host port."""
    return {port: None for port in exposed_ports}
