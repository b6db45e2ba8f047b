"""Pipeline services.

- image.py: Image sources
- interfaces.py: Capability protocols
- creator.py / starter.py / terminator.py: Base stages and decorators
- definition.py: Container definition and builder options
- orchestrator.py: Run / Info / Terminate entry points
- container/: Docker runtime client
"""

from .orchestrator import Orchestrator, get_default_orchestrator, set_default_orchestrator
from .definition import GenericContainerDefinition
from .image import FromImageSource, Platform

__all__ = [
    "Orchestrator",
    "get_default_orchestrator",
    "set_default_orchestrator",
    "GenericContainerDefinition",
    "FromImageSource",
    "Platform",
]
