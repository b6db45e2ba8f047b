"""Data models for containerflow."""

from .container import (
    ContainerInfo,
    ContainerState,
    CreatedContainer,
    StartedContainer,
    first_host_ports,
    normalize_port,
)
from .errors import (
    ErrorType,
    ContainerFlowException,
    ImageResolutionError,
    ContainerCreateError,
    ContainerStartError,
    ReadinessTimeoutError,
    ContainerTerminationError,
    ContainerInspectError,
    RuntimeUnavailableError,
    ExecutionCancelledError,
    DeadlineExceededError,
    DefinitionFrozenError,
    PortNotMappedError,
    attach_container,
)

__all__ = [
    # Container models
    "ContainerInfo",
    "ContainerState",
    "CreatedContainer",
    "StartedContainer",
    "first_host_ports",
    "normalize_port",
    # Error models
    "ErrorType",
    "ContainerFlowException",
    "ImageResolutionError",
    "ContainerCreateError",
    "ContainerStartError",
    "ReadinessTimeoutError",
    "ContainerTerminationError",
    "ContainerInspectError",
    "RuntimeUnavailableError",
    "ExecutionCancelledError",
    "DeadlineExceededError",
    "DefinitionFrozenError",
    "PortNotMappedError",
    "attach_container",
]
