"""Generic container definition and its builder options.

A definition is assembled by applying option functions in call order,
then frozen. Options that wrap the creator, starter or terminator stack
their decorators: the last one applied is outermost.
"""

from typing import Callable, List, Optional, Tuple

from ..models.container import normalize_port
from ..models.errors import DefinitionFrozenError
from .interfaces import (
    ContainerCreator,
    ContainerRuntimeClient,
    ContainerStarter,
    ContainerTerminator,
    ImageSource,
    WaitStrategy,
)
from .starter import AwaitingContainerStarter


class GenericContainerDefinition:
    """Image source, exposed ports and the creator/starter/terminator chain."""

    def __init__(
        self,
        image_source: ImageSource,
        creator: Optional[ContainerCreator] = None,
        starter: Optional[ContainerStarter] = None,
        terminator: Optional[ContainerTerminator] = None,
        runtime: Optional[ContainerRuntimeClient] = None,
    ):
        self._image_source = image_source
        self._exposed_ports: List[str] = []
        self._creator = creator
        self._starter = starter
        self._terminator = terminator
        self._runtime = runtime
        self._frozen = False

    def _check_mutable(self) -> None:
        if self._frozen:
            raise DefinitionFrozenError()

    def freeze(self) -> "GenericContainerDefinition":
        """Finish building; every later mutation raises DefinitionFrozenError."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def image_source(self) -> ImageSource:
        return self._image_source

    @property
    def exposed_ports(self) -> Tuple[str, ...]:
        return tuple(self._exposed_ports)

    @property
    def creator(self) -> Optional[ContainerCreator]:
        return self._creator

    @creator.setter
    def creator(self, value: ContainerCreator) -> None:
        self._check_mutable()
        self._creator = value

    @property
    def starter(self) -> Optional[ContainerStarter]:
        return self._starter

    @starter.setter
    def starter(self, value: ContainerStarter) -> None:
        self._check_mutable()
        self._starter = value

    @property
    def terminator(self) -> Optional[ContainerTerminator]:
        return self._terminator

    @terminator.setter
    def terminator(self, value: ContainerTerminator) -> None:
        self._check_mutable()
        self._terminator = value

    @property
    def runtime(self) -> Optional[ContainerRuntimeClient]:
        return self._runtime

    def bind_runtime(self, runtime: ContainerRuntimeClient) -> None:
        """Set the runtime client used by readiness checks and inspection."""
        self._check_mutable()
        self._runtime = runtime

    def add_exposed_ports(self, *ports) -> None:
        """Append ports in order; duplicates are kept."""
        self._check_mutable()
        self._exposed_ports.extend(normalize_port(port) for port in ports)

    def __repr__(self) -> str:
        return (
            f"GenericContainerDefinition(image_source={self._image_source!r}, "
            f"exposed_ports={list(self._exposed_ports)!r})"
        )


GenericContainerOption = Callable[[GenericContainerDefinition], None]


def with_exposed_ports(*ports) -> GenericContainerOption:
    """Expose container ports (``"80/tcp"``, ``"53/udp"``, ``"8080"``)."""
    normalized = [normalize_port(port) for port in ports]

    def option(definition: GenericContainerDefinition) -> None:
        definition.add_exposed_ports(*normalized)

    return option


def waiting_for(strategy: WaitStrategy) -> GenericContainerOption:
    """Wrap the current starter so start also waits for ``strategy``."""

    def option(definition: GenericContainerDefinition) -> None:
        definition.starter = AwaitingContainerStarter(
            definition.starter, strategy, client=definition.runtime
        )

    return option


def wrapping_creator(
    decorate: Callable[[ContainerCreator], ContainerCreator]
) -> GenericContainerOption:
    """Replace the creator with ``decorate(current_creator)``."""

    def option(definition: GenericContainerDefinition) -> None:
        definition.creator = decorate(definition.creator)

    return option


def wrapping_starter(
    decorate: Callable[[ContainerStarter], ContainerStarter]
) -> GenericContainerOption:
    """Replace the starter with ``decorate(current_starter)``."""

    def option(definition: GenericContainerDefinition) -> None:
        definition.starter = decorate(definition.starter)

    return option


def wrapping_terminator(
    decorate: Callable[[ContainerTerminator], ContainerTerminator]
) -> GenericContainerOption:
    """Replace the terminator with ``decorate(current_terminator)``."""

    def option(definition: GenericContainerDefinition) -> None:
        definition.terminator = decorate(definition.terminator)

    return option
