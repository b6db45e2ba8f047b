"""Error kinds raised by the provisioning pipeline.

Every stage forwards the first error it meets unchanged. When a later
stage fails after an earlier one allocated runtime resources, the most
advanced handle is recorded on the exception's ``container`` attribute
so the caller can retry or terminate.
"""

from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    INTERNAL = "internal"
    RESOLUTION = "resolution"
    CREATE = "create"
    START = "start"
    READINESS_TIMEOUT = "readiness_timeout"
    TERMINATION = "termination"
    INSPECT = "inspect"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"
    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    DEFINITION = "definition"
    PORT_NOT_MAPPED = "port_not_mapped"


class ContainerFlowException(Exception):
    """Base exception for containerflow."""

    error_type: ErrorType = ErrorType.INTERNAL

    def __init__(
        self,
        message: str,
        error_type: Optional[ErrorType] = None,
        container: Any = None,
    ):
        self.message = message
        if error_type is not None:
            self.error_type = error_type
        self.container = container
        super().__init__(message)


class ImageResolutionError(ContainerFlowException):
    """Image source could not produce a runtime reference."""

    error_type = ErrorType.RESOLUTION

    def __init__(self, image: str, reason: str = "invalid image reference", **kwargs):
        self.image = image
        super().__init__(f"Cannot resolve image {image!r}: {reason}", **kwargs)


class ContainerCreateError(ContainerFlowException):
    """Runtime rejected or failed the create call."""

    error_type = ErrorType.CREATE


class ContainerStartError(ContainerFlowException):
    """Runtime rejected or failed the start call.

    The container may remain allocated on the runtime.
    """

    error_type = ErrorType.START


class ReadinessTimeoutError(ContainerFlowException):
    """Container started but its readiness condition never held."""

    error_type = ErrorType.READINESS_TIMEOUT

    def __init__(self, message: str = "Container did not become ready", timeout: Optional[float] = None, **kwargs):
        self.timeout = timeout
        if timeout is not None:
            message = f"{message} within {timeout:g}s"
        super().__init__(message, **kwargs)


class ContainerTerminationError(ContainerFlowException):
    """Stop/remove failed; the container may still be running."""

    error_type = ErrorType.TERMINATION


class ContainerInspectError(ContainerFlowException):
    """Runtime inspection of a container failed."""

    error_type = ErrorType.INSPECT


class RuntimeUnavailableError(ContainerFlowException):
    """The container runtime could not be reached."""

    error_type = ErrorType.RUNTIME_UNAVAILABLE

    def __init__(self, message: str = None, **kwargs):
        super().__init__(message or "Container runtime is currently unavailable", **kwargs)


class ExecutionCancelledError(ContainerFlowException):
    """The call's cancel event fired while a stage was in flight."""

    error_type = ErrorType.CANCELLED

    def __init__(self, message: str = "Execution cancelled", **kwargs):
        super().__init__(message, **kwargs)


class DeadlineExceededError(ExecutionCancelledError):
    """The call's deadline passed while a stage was in flight."""

    error_type = ErrorType.DEADLINE_EXCEEDED

    def __init__(self, message: str = "Execution deadline exceeded", **kwargs):
        super().__init__(message, **kwargs)


class DefinitionFrozenError(ContainerFlowException):
    """A built container definition was mutated."""

    error_type = ErrorType.DEFINITION

    def __init__(self, message: str = "Container definition is frozen once built", **kwargs):
        super().__init__(message, **kwargs)


class PortNotMappedError(ContainerFlowException, KeyError):
    """Requested container port has no host binding."""

    error_type = ErrorType.PORT_NOT_MAPPED

    def __init__(self, port: str, **kwargs):
        self.port = port
        super().__init__(f"Port {port} is not mapped to the host", **kwargs)

    def __str__(self) -> str:
        return self.message


def attach_container(exc: BaseException, container: Any) -> BaseException:
    """Record ``container`` on ``exc`` unless a handle is already present.

    The exception keeps its type and identity; only the handle is added.
    """
    if getattr(exc, "container", None) is None:
        exc.container = container
    return exc
