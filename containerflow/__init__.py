"""containerflow - composable single-container provisioning pipeline.

Usage:
    import containerflow

    container = await containerflow.run(
        containerflow.new_generic_container(
            containerflow.from_image("nginx", containerflow.with_image_platform("linux/amd64")),
            containerflow.with_exposed_ports("80/tcp"),
            containerflow.waiting_for(strategy),
        ),
        containerflow.with_timeout(60),
    )
    info = await containerflow.info(container)
    uri = f"http://{info.host}:{info.mapped_port('80')}"
"""

from .core.context import (
    ExecutionConfiguration,
    ExecutionContext,
    with_cancel_event,
    with_context,
    with_timeout,
)
from .models import (
    ContainerInfo,
    ContainerState,
    CreatedContainer,
    StartedContainer,
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
)
from .services.definition import (
    GenericContainerDefinition,
    waiting_for,
    with_exposed_ports,
    wrapping_creator,
    wrapping_starter,
    wrapping_terminator,
)
from .services.image import FromImageSource, Platform, from_image, with_image_platform
from .services.orchestrator import (
    Orchestrator,
    get_default_orchestrator,
    set_default_orchestrator,
    info,
    new_generic_container,
    run,
    terminate,
)
from .utils.logging import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    # Execution options
    "ExecutionConfiguration",
    "ExecutionContext",
    "with_cancel_event",
    "with_context",
    "with_timeout",
    # Handles
    "ContainerInfo",
    "ContainerState",
    "CreatedContainer",
    "StartedContainer",
    # Errors
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
    # Definition
    "GenericContainerDefinition",
    "waiting_for",
    "with_exposed_ports",
    "wrapping_creator",
    "wrapping_starter",
    "wrapping_terminator",
    # Image sources
    "FromImageSource",
    "Platform",
    "from_image",
    "with_image_platform",
    # Orchestrator
    "Orchestrator",
    "get_default_orchestrator",
    "set_default_orchestrator",
    "info",
    "new_generic_container",
    "run",
    "terminate",
    # Logging
    "get_logger",
    "setup_logging",
]
