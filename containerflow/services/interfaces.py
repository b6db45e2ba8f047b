"""Capability interfaces for the provisioning pipeline.

Each capability is a single-method protocol. Cross-cutting behavior is
added by decorators that hold an inner instance of the same protocol
and delegate to it exactly once per call.
"""

from typing import TYPE_CHECKING, Dict, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..core.context import ExecutionContext
from ..models.container import CreatedContainer, StartedContainer

if TYPE_CHECKING:
    from .definition import GenericContainerDefinition
    from .image import Platform


@runtime_checkable
class ImageSource(Protocol):
    """Resolves an abstract image reference to a runtime-usable one."""

    async def prepare(self, ctx: ExecutionContext) -> str:
        """Return the concrete image reference.

        Must be idempotent and must not create runtime-side resources.
        """
        ...


@runtime_checkable
class ContainerCreator(Protocol):
    async def create(
        self, ctx: ExecutionContext, definition: "GenericContainerDefinition"
    ) -> CreatedContainer:
        ...


@runtime_checkable
class ContainerStarter(Protocol):
    async def start(
        self, ctx: ExecutionContext, container: CreatedContainer
    ) -> StartedContainer:
        ...


@runtime_checkable
class ContainerTerminator(Protocol):
    async def terminate(
        self, ctx: ExecutionContext, container: CreatedContainer
    ) -> None:
        ...


class ReadinessTarget(Protocol):
    """Connectable surface of a started container, handed to wait strategies."""

    @property
    def container_id(self) -> str:
        ...

    async def host(self) -> str:
        ...

    async def mapped_port(self, port: str) -> str:
        ...

    async def logs(self) -> str:
        ...


@runtime_checkable
class WaitStrategy(Protocol):
    """Blocks until a started container is usable or its own timeout elapses."""

    async def wait_until_ready(
        self, ctx: ExecutionContext, target: ReadinessTarget
    ) -> None:
        ...


class ContainerRuntimeClient(Protocol):
    """Operations the pipeline consumes from the container runtime."""

    async def create_container(
        self,
        ctx: ExecutionContext,
        image: str,
        exposed_ports: Sequence[str],
        platform: Optional["Platform"] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Create a container and return its runtime id."""
        ...

    async def start_container(self, ctx: ExecutionContext, container_id: str) -> None:
        ...

    async def stop_and_remove(self, ctx: ExecutionContext, container_id: str) -> None:
        ...

    async def inspect_ports(
        self, ctx: ExecutionContext, container_id: str
    ) -> Dict[str, str]:
        """Map each published container port (``"80/tcp"``) to its host port."""
        ...

    async def container_logs(self, ctx: ExecutionContext, container_id: str) -> str:
        ...

    def container_host(self) -> str:
        """Host name under which published ports are reachable."""
        ...

    def close(self) -> None:
        ...
