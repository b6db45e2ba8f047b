"""Container creators.

``ContainerImageCreator`` talks to the runtime; ``LoggingContainerCreator``
is an observability shim around any other creator.
"""

from typing import TYPE_CHECKING, Dict

import structlog

from ..core.context import ExecutionContext
from ..models.container import ContainerState, CreatedContainer
from ..models.errors import ContainerCreateError
from .interfaces import ContainerCreator, ContainerRuntimeClient

if TYPE_CHECKING:
    from .definition import GenericContainerDefinition

logger = structlog.get_logger(__name__)


class ContainerImageCreator:
    """Creates a container from the definition's image source."""

    def __init__(self, client: ContainerRuntimeClient, labels: Dict[str, str] = None):
        self.client = client
        self.labels = dict(labels or {})

    async def create(
        self, ctx: ExecutionContext, definition: "GenericContainerDefinition"
    ) -> CreatedContainer:
        """Resolve the image, then issue the runtime create call.

        Errors from the image source or the runtime propagate unchanged.
        """
        image = await ctx.bound(definition.image_source.prepare(ctx))
        container_id = await self.client.create_container(
            ctx,
            image,
            list(definition.exposed_ports),
            platform=getattr(definition.image_source, "platform", None),
            labels=self.labels,
        )
        if not container_id:
            raise ContainerCreateError(f"Runtime returned no container id for {image}")
        return CreatedContainer(id=container_id, definition=definition)


class LoggingContainerCreator:
    """Logs around an inner creator without altering its outcome."""

    def __init__(self, inner: ContainerCreator, logger=None):
        self.inner = inner
        self.logger = logger or structlog.get_logger(__name__)

    async def create(
        self, ctx: ExecutionContext, definition: "GenericContainerDefinition"
    ) -> CreatedContainer:
        log = self.logger.bind(image_source=repr(definition.image_source))
        log.info("Creating container", state=ContainerState.CREATING.value)
        try:
            created = await self.inner.create(ctx, definition)
        except Exception as e:
            log.error("Failed to create container", error=str(e), error_class=type(e).__name__)
            raise
        log.info(
            "Created container",
            container_id=created.short_id,
            state=ContainerState.CREATED.value,
        )
        return created
