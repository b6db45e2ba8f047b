"""Container starters.

``RuntimeContainerStarter`` issues the runtime start call.
``AwaitingContainerStarter`` composes a readiness wait after an inner
starter; ``LoggingContainerStarter`` is an observability shim.
"""

from typing import Optional

import structlog

from ..core.context import ExecutionContext
from ..models.container import ContainerState, CreatedContainer, StartedContainer, normalize_port
from ..models.errors import PortNotMappedError, RuntimeUnavailableError, attach_container
from .interfaces import ContainerRuntimeClient, ContainerStarter, WaitStrategy

logger = structlog.get_logger(__name__)


class RuntimeContainerStarter:
    """Transitions a created container to running."""

    def __init__(self, client: ContainerRuntimeClient):
        self.client = client

    async def start(
        self, ctx: ExecutionContext, container: CreatedContainer
    ) -> StartedContainer:
        await self.client.start_container(ctx, container.id)
        return StartedContainer.from_created(container)


class StartedContainerTarget:
    """Readiness adapter exposing a started container's connectable surface.

    Lookups go through the runtime client bound to the caller's context.
    """

    def __init__(
        self,
        client: ContainerRuntimeClient,
        container: StartedContainer,
        ctx: ExecutionContext,
    ):
        self._client = client
        self._container = container
        self._ctx = ctx

    @property
    def container_id(self) -> str:
        return self._container.id

    @property
    def container(self) -> StartedContainer:
        return self._container

    async def host(self) -> str:
        return self._client.container_host()

    async def mapped_port(self, port) -> str:
        key = normalize_port(port)
        ports = await self._client.inspect_ports(self._ctx, self._container.id)
        host_port = ports.get(key)
        if not host_port:
            raise PortNotMappedError(key)
        return host_port

    async def logs(self) -> str:
        return await self._client.container_logs(self._ctx, self._container.id)


class AwaitingContainerStarter:
    """Starts via an inner starter, then waits for readiness.

    A wait failure is raised with the already-started container attached
    as ``exc.container``: the container is running but not usable.
    """

    def __init__(
        self,
        inner: ContainerStarter,
        strategy: WaitStrategy,
        client: Optional[ContainerRuntimeClient] = None,
    ):
        self.inner = inner
        self.strategy = strategy
        self.client = client

    async def start(
        self, ctx: ExecutionContext, container: CreatedContainer
    ) -> StartedContainer:
        started = await self.inner.start(ctx, container)

        client = self.client or started.definition.runtime
        try:
            if client is None:
                raise RuntimeUnavailableError(
                    "No runtime client bound for readiness checks"
                )
            target = StartedContainerTarget(client, started, ctx)
            await ctx.bound(self.strategy.wait_until_ready(ctx, target))
        except Exception as e:
            logger.warning(
                "Container started but not ready",
                container_id=started.short_id,
                strategy=type(self.strategy).__name__,
                state=ContainerState.NOT_READY.value,
                error=str(e),
            )
            attach_container(e, started)
            raise

        logger.debug(
            "Container ready",
            container_id=started.short_id,
            strategy=type(self.strategy).__name__,
            state=ContainerState.READY.value,
        )
        return started


class LoggingContainerStarter:
    """Logs around an inner starter without altering its outcome."""

    def __init__(self, inner: ContainerStarter, logger=None):
        self.inner = inner
        self.logger = logger or structlog.get_logger(__name__)

    async def start(
        self, ctx: ExecutionContext, container: CreatedContainer
    ) -> StartedContainer:
        log = self.logger.bind(container_id=container.short_id)
        log.info("Starting container", state=ContainerState.STARTING.value)
        try:
            started = await self.inner.start(ctx, container)
        except Exception as e:
            log.error("Failed to start container", error=str(e), error_class=type(e).__name__)
            raise
        log.info("Started container", state=ContainerState.STARTED.value)
        return started
