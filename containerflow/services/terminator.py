"""Container terminators."""

import structlog

from ..core.context import ExecutionContext
from ..models.container import ContainerState, CreatedContainer
from .interfaces import ContainerRuntimeClient, ContainerTerminator

logger = structlog.get_logger(__name__)


class RuntimeContainerTerminator:
    """Stops and removes a container on the runtime."""

    def __init__(self, client: ContainerRuntimeClient):
        self.client = client

    async def terminate(self, ctx: ExecutionContext, container: CreatedContainer) -> None:
        await self.client.stop_and_remove(ctx, container.id)


class LoggingContainerTerminator:
    """Logs around an inner terminator without altering its outcome."""

    def __init__(self, inner: ContainerTerminator, logger=None):
        self.inner = inner
        self.logger = logger or structlog.get_logger(__name__)

    async def terminate(self, ctx: ExecutionContext, container: CreatedContainer) -> None:
        log = self.logger.bind(container_id=container.short_id)
        log.info("Terminating container", state=ContainerState.TERMINATING.value)
        try:
            await self.inner.terminate(ctx, container)
        except Exception as e:
            log.error("Failed to terminate container", error=str(e), error_class=type(e).__name__)
            raise
        log.info("Terminated container", state=ContainerState.TERMINATED.value)
