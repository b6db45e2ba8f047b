"""Container Orchestrator - entry point of the provisioning pipeline.

The orchestrator owns one runtime client and one logger, wires the
default creator/starter/terminator chain into new definitions, and runs
definitions through create then start.

Usage:
    orchestrator = Orchestrator(client=DockerRuntimeClient.from_settings())
    definition = orchestrator.new_generic_container(
        from_image("nginx"),
        with_exposed_ports("80/tcp"),
        waiting_for(strategy),
    )
    container = await orchestrator.run(definition, with_timeout(60))
    info = await orchestrator.info(container)
    await orchestrator.terminate(container)
"""

import threading
from typing import Optional

import structlog

from ..core.context import ExecutionConfiguration, ExecutionOption
from ..models.container import ContainerInfo, CreatedContainer, StartedContainer
from ..models.errors import attach_container
from .container import LazyDockerRuntimeClient
from .creator import ContainerImageCreator, LoggingContainerCreator
from .definition import GenericContainerDefinition, GenericContainerOption
from .interfaces import ContainerRuntimeClient, ImageSource
from .starter import RuntimeContainerStarter
from .terminator import LoggingContainerTerminator, RuntimeContainerTerminator

logger = structlog.get_logger(__name__)


class Orchestrator:
    """Builds container definitions and drives them through the pipeline.

    Stages run sequentially on the caller's flow:
    1. Create (image resolution + runtime create)
    2. Start (runtime start + optional readiness waits)

    A failing stage short-circuits; nothing is rolled back.
    """

    def __init__(self, client: Optional[ContainerRuntimeClient] = None, logger=None):
        """Initialize the orchestrator.

        Args:
            client: Runtime client; a Docker client built from settings
                on first use when omitted
            logger: structlog logger used by the observability decorators
        """
        self.client = client if client is not None else LazyDockerRuntimeClient()
        self.logger = logger or structlog.get_logger(__name__)

    def new_generic_container(
        self, source: ImageSource, *options: GenericContainerOption
    ) -> GenericContainerDefinition:
        """Build a definition with the default chain, then apply ``options`` in order."""
        definition = GenericContainerDefinition(
            image_source=source,
            creator=LoggingContainerCreator(
                ContainerImageCreator(self.client), logger=self.logger
            ),
            starter=RuntimeContainerStarter(self.client),
            terminator=LoggingContainerTerminator(
                RuntimeContainerTerminator(self.client), logger=self.logger
            ),
            runtime=self.client,
        )
        for option in options:
            option(definition)
        return definition.freeze()

    async def run(
        self, definition: GenericContainerDefinition, *options: ExecutionOption
    ) -> StartedContainer:
        """Create and start a container.

        Hand-built definitions missing a creator or starter use the
        default chain; one without a runtime is bound to this
        orchestrator's client before it is frozen.

        Raises:
            Exception: The first stage error, unchanged. A start failure
                carries the CreatedContainer on ``exc.container``; a readiness
                failure carries the StartedContainer.
        """
        conf = ExecutionConfiguration.build(*options)
        ctx = conf.context
        if definition.runtime is None and not definition.frozen:
            definition.bind_runtime(self.client)
        definition.freeze()

        creator = definition.creator
        if creator is None:
            creator = LoggingContainerCreator(
                ContainerImageCreator(self.client), logger=self.logger
            )
        starter = definition.starter
        if starter is None:
            starter = RuntimeContainerStarter(self.client)

        created = await creator.create(ctx, definition)

        try:
            started = await starter.start(ctx, created)
        except Exception as e:
            attach_container(e, created)
            raise

        return started

    async def info(
        self, container: StartedContainer, *options: ExecutionOption
    ) -> ContainerInfo:
        """Resolve host and mapped ports of a running container.

        Side-effect free on the container; safe to call repeatedly.
        """
        conf = ExecutionConfiguration.build(*options)
        client = container.definition.runtime or self.client
        ports = await client.inspect_ports(conf.context, container.id)
        return ContainerInfo(host=client.container_host(), ports=ports)

    async def terminate(
        self, container: CreatedContainer, *options: ExecutionOption
    ) -> None:
        """Stop and remove a created or started container."""
        conf = ExecutionConfiguration.build(*options)
        terminator = container.definition.terminator
        if terminator is None:
            terminator = RuntimeContainerTerminator(self.client)
        await terminator.terminate(conf.context, container)

    def close(self) -> None:
        """Release the runtime client."""
        self.client.close()


_default_orchestrator: Optional[Orchestrator] = None
_default_lock = threading.Lock()


def get_default_orchestrator() -> Orchestrator:
    """Get the process-wide default orchestrator, building it on first use."""
    global _default_orchestrator
    with _default_lock:
        if _default_orchestrator is None:
            _default_orchestrator = Orchestrator()
        return _default_orchestrator


def set_default_orchestrator(orchestrator: Optional[Orchestrator]) -> Optional[Orchestrator]:
    """Replace the default orchestrator and return the previous one."""
    global _default_orchestrator
    with _default_lock:
        previous, _default_orchestrator = _default_orchestrator, orchestrator
        return previous


def new_generic_container(
    source: ImageSource, *options: GenericContainerOption
) -> GenericContainerDefinition:
    return get_default_orchestrator().new_generic_container(source, *options)


async def run(
    definition: GenericContainerDefinition, *options: ExecutionOption
) -> StartedContainer:
    return await get_default_orchestrator().run(definition, *options)


async def info(container: StartedContainer, *options: ExecutionOption) -> ContainerInfo:
    return await get_default_orchestrator().info(container, *options)


async def terminate(container: CreatedContainer, *options: ExecutionOption) -> None:
    await get_default_orchestrator().terminate(container, *options)
