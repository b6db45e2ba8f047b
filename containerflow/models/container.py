"""Container handles and post-start query results."""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping

from .errors import PortNotMappedError

if TYPE_CHECKING:
    from ..services.definition import GenericContainerDefinition

_FROM_CREATED = object()

_PORT_PATTERN = re.compile(r"^(?P<number>\d{1,5})(?:/(?P<proto>tcp|udp|sctp))?$")


def normalize_port(port) -> str:
    """Normalise a port spec to ``"<number>/<proto>"``.

    Accepts ints, ``"80"`` and ``"80/tcp"``; the protocol defaults to tcp.

    Raises:
        ValueError: If the spec is not a valid port
    """
    match = _PORT_PATTERN.match(str(port).strip().lower())
    if not match:
        raise ValueError(f"Invalid port spec: {port!r}")
    number = int(match.group("number"))
    if not 0 < number <= 65535:
        raise ValueError(f"Port out of range: {port!r}")
    return f"{number}/{match.group('proto') or 'tcp'}"


class ContainerState(str, Enum):
    """Per-container lifecycle states."""

    DEFINED = "defined"
    CREATING = "creating"
    CREATED = "created"
    STARTING = "starting"
    STARTED = "started"
    READY = "ready"
    NOT_READY = "not_ready"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class CreatedContainer:
    """A container allocated on the runtime but not yet running."""

    id: str
    definition: "GenericContainerDefinition" = field(compare=False, repr=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("container id must be non-empty")

    @property
    def short_id(self) -> str:
        return self.id[:12]


@dataclass(frozen=True)
class StartedContainer(CreatedContainer):
    """A created container that has passed the start call.

    Only :meth:`from_created` builds one, so every started handle descends
    from a real create call. Direct construction raises TypeError.
    """

    _origin: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._origin is not _FROM_CREATED:
            raise TypeError("StartedContainer must be built with from_created()")
        super().__post_init__()

    @classmethod
    def from_created(cls, created: CreatedContainer) -> "StartedContainer":
        """Promote ``created`` after the runtime accepted its start call."""
        return cls(id=created.id, definition=created.definition, _origin=_FROM_CREATED)


@dataclass(frozen=True)
class ContainerInfo:
    """Externally addressable connection data for a running container.

    Read-only and hashable; ``ports`` is copied into an immutable view.
    """

    host: str
    ports: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "ports", MappingProxyType(dict(self.ports)))

    def __hash__(self):
        return hash((self.host, tuple(sorted(self.ports.items()))))

    def mapped_port(self, port) -> str:
        """Get the host port bound to a container port.

        Args:
            port: Container port, e.g. ``"80"`` or ``"80/tcp"``

        Returns:
            Host port as a string

        Raises:
            PortNotMappedError: If the port is not published
        """
        key = normalize_port(port)
        host_port = self.ports.get(key)
        if not host_port:
            raise PortNotMappedError(key)
        return host_port

    def endpoint(self, port) -> str:
        """Get ``host:port`` for a container port."""
        return f"{self.host}:{self.mapped_port(port)}"


def first_host_ports(bindings: Mapping[str, object]) -> Dict[str, str]:
    """Reduce Docker-style port bindings to one host port per container port.

    ``{"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "32768"}], "81/tcp": None}``
    becomes ``{"80/tcp": "32768"}``.
    """
    ports: Dict[str, str] = {}
    for container_port, host_bindings in (bindings or {}).items():
        for binding in host_bindings or []:
            host_port = binding.get("HostPort")
            if host_port:
                ports[normalize_port(container_port)] = str(host_port)
                break
    return ports
