"""Docker runtime client.

Thin adapter implementing the pipeline's runtime capability over the
docker SDK. Blocking SDK calls run in the default executor and are
bound to the caller's execution context.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Sequence

import docker
import structlog
from docker.errors import DockerException, ImageNotFound, NotFound

from ...config import settings
from ...config.docker import DockerConfig
from ...core.context import ExecutionContext
from ...models.container import first_host_ports
from ...models.errors import (
    ContainerCreateError,
    ContainerInspectError,
    ContainerStartError,
    ContainerTerminationError,
    RuntimeUnavailableError,
)
from ..image import Platform
from .utils import host_from_base_url, port_bindings, run_in_executor, split_image_reference

logger = structlog.get_logger(__name__)

MANAGED_LABEL = "org.containerflow.managed"
CREATED_AT_LABEL = "org.containerflow.created-at"


class DockerClientFactory:
    """Builds docker SDK clients from configuration."""

    @staticmethod
    def create(config: Optional[DockerConfig] = None) -> docker.DockerClient:
        """Create and ping a docker client.

        Raises:
            RuntimeUnavailableError: If the daemon cannot be reached
        """
        config = config or settings.docker
        try:
            if config.docker_host:
                client = docker.DockerClient(
                    base_url=config.docker_host, timeout=config.docker_client_timeout
                )
            else:
                client = docker.from_env(timeout=config.docker_client_timeout)
            client.ping()
        except (DockerException, OSError) as e:
            logger.error(
                "Docker daemon unreachable",
                docker_host=config.docker_host or "from_env",
                error=str(e),
            )
            raise RuntimeUnavailableError(f"Cannot connect to Docker: {e}") from e

        logger.debug("Docker client initialized", base_url=client.api.base_url)
        return client


class DockerRuntimeClient:
    """Container runtime capability backed by a docker SDK client.

    The SDK client is shared by concurrent calls; each call operates on
    its own container id.
    """

    def __init__(self, client: docker.DockerClient, config: Optional[DockerConfig] = None):
        self._client = client
        self._config = config or settings.docker

    @classmethod
    def from_settings(cls, config: Optional[DockerConfig] = None) -> "DockerRuntimeClient":
        config = config or settings.docker
        return cls(DockerClientFactory.create(config), config)

    @property
    def docker(self) -> docker.DockerClient:
        return self._client

    def _labels(self, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        labels = {
            MANAGED_LABEL: "true",
            CREATED_AT_LABEL: datetime.now(timezone.utc).isoformat(),
        }
        labels.update(self._config.container_labels)
        labels.update(extra or {})
        return labels

    def _pull(self, image: str, platform: Optional[Platform]) -> None:
        repository, tag = split_image_reference(image)
        logger.info(
            "Pulling image",
            repository=repository,
            tag=tag,
            platform=str(platform) if platform else None,
        )
        self._client.images.pull(
            repository, tag=tag, platform=str(platform) if platform else None
        )

    def _create(
        self,
        image: str,
        exposed_ports: Sequence[str],
        platform: Optional[Platform],
        labels: Dict[str, str],
    ) -> str:
        kwargs = {"ports": port_bindings(exposed_ports), "labels": labels}
        if platform is not None:
            kwargs["platform"] = str(platform)
        try:
            container = self._client.containers.create(image, **kwargs)
        except ImageNotFound:
            if not self._config.pull_missing_images:
                raise
            self._pull(image, platform)
            container = self._client.containers.create(image, **kwargs)
        return container.id

    async def create_container(
        self,
        ctx: ExecutionContext,
        image: str,
        exposed_ports: Sequence[str],
        platform: Optional[Platform] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> str:
        try:
            return await ctx.bound(
                run_in_executor(
                    self._create, image, list(exposed_ports), platform, self._labels(labels)
                )
            )
        except (DockerException, OSError) as e:
            raise ContainerCreateError(f"Failed to create container from {image}: {e}") from e

    async def start_container(self, ctx: ExecutionContext, container_id: str) -> None:
        try:
            await ctx.bound(run_in_executor(self._client.api.start, container_id))
        except (DockerException, OSError) as e:
            raise ContainerStartError(
                f"Failed to start container {container_id[:12]}: {e}"
            ) from e

    def _stop_and_remove(self, container_id: str) -> None:
        try:
            self._client.api.stop(container_id, timeout=self._config.docker_stop_timeout)
            self._client.api.remove_container(container_id, v=True, force=True)
        except NotFound:
            logger.debug("Container already removed", container_id=container_id[:12])

    async def stop_and_remove(self, ctx: ExecutionContext, container_id: str) -> None:
        try:
            await ctx.bound(run_in_executor(self._stop_and_remove, container_id))
        except (DockerException, OSError) as e:
            raise ContainerTerminationError(
                f"Failed to terminate container {container_id[:12]}: {e}"
            ) from e

    def _inspect_ports(self, container_id: str) -> Dict[str, str]:
        attrs = self._client.api.inspect_container(container_id)
        bindings = (attrs.get("NetworkSettings") or {}).get("Ports") or {}
        return first_host_ports(bindings)

    async def inspect_ports(self, ctx: ExecutionContext, container_id: str) -> Dict[str, str]:
        try:
            return await ctx.bound(run_in_executor(self._inspect_ports, container_id))
        except (DockerException, OSError) as e:
            raise ContainerInspectError(
                f"Failed to inspect container {container_id[:12]}: {e}"
            ) from e

    def _logs(self, container_id: str) -> str:
        output = self._client.api.logs(container_id, stdout=True, stderr=True)
        return output.decode("utf-8", errors="replace")

    async def container_logs(self, ctx: ExecutionContext, container_id: str) -> str:
        try:
            return await ctx.bound(run_in_executor(self._logs, container_id))
        except (DockerException, OSError) as e:
            raise ContainerInspectError(
                f"Failed to read logs of container {container_id[:12]}: {e}"
            ) from e

    def container_host(self) -> str:
        if self._config.docker_host_override:
            return self._config.docker_host_override
        return host_from_base_url(self._client.api.base_url)

    def close(self) -> None:
        """Close the underlying SDK client."""
        try:
            self._client.close()
        except (DockerException, OSError) as e:
            logger.warning("Failed to close Docker client", error=str(e))


class LazyDockerRuntimeClient:
    """Defers building the docker client until the first runtime call.

    The daemon ping runs in the default executor and is bound to the
    caller's execution context, so the first call honours deadlines and
    cancel events.
    """

    def __init__(self, config: Optional[DockerConfig] = None):
        self._config = config
        self._delegate: Optional[DockerRuntimeClient] = None
        self._build_lock: Optional[asyncio.Lock] = None
        self._lock = threading.Lock()

    async def _ensure(self, ctx: ExecutionContext) -> DockerRuntimeClient:
        if self._delegate is not None:
            return self._delegate
        if self._build_lock is None:
            self._build_lock = asyncio.Lock()
        async with self._build_lock:
            if self._delegate is None:
                delegate = await ctx.bound(
                    run_in_executor(DockerRuntimeClient.from_settings, self._config)
                )
                with self._lock:
                    self._delegate = delegate
        return self._delegate

    @property
    def delegate(self) -> Optional[DockerRuntimeClient]:
        return self._delegate

    async def create_container(self, ctx, image, exposed_ports, platform=None, labels=None) -> str:
        delegate = await self._ensure(ctx)
        return await delegate.create_container(
            ctx, image, exposed_ports, platform=platform, labels=labels
        )

    async def start_container(self, ctx, container_id) -> None:
        delegate = await self._ensure(ctx)
        await delegate.start_container(ctx, container_id)

    async def stop_and_remove(self, ctx, container_id) -> None:
        delegate = await self._ensure(ctx)
        await delegate.stop_and_remove(ctx, container_id)

    async def inspect_ports(self, ctx, container_id) -> Dict[str, str]:
        delegate = await self._ensure(ctx)
        return await delegate.inspect_ports(ctx, container_id)

    async def container_logs(self, ctx, container_id) -> str:
        delegate = await self._ensure(ctx)
        return await delegate.container_logs(ctx, container_id)

    def container_host(self) -> str:
        """Host of the connected daemon.

        Raises:
            RuntimeUnavailableError: If no runtime call has connected yet
        """
        if self._delegate is None:
            raise RuntimeUnavailableError("Docker client not connected yet")
        return self._delegate.container_host()

    def close(self) -> None:
        with self._lock:
            if self._delegate is not None:
                self._delegate.close()
                self._delegate = None
