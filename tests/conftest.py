"""Pytest configuration and shared fixtures."""

from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from containerflow.core.context import ExecutionContext
from containerflow.services.orchestrator import Orchestrator


class FakeRuntimeClient:
    """In-memory runtime client recording every call."""

    def __init__(
        self,
        container_id: str = "abc",
        host: str = "127.0.0.1",
        ports: Optional[Dict[str, str]] = None,
        logs: str = "",
    ):
        self.container_id = container_id
        self.host = host
        self.ports = ports if ports is not None else {"80/tcp": "32768"}
        self.log_output = logs
        self.calls: List[tuple] = []
        self.create_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None
        self.terminate_error: Optional[Exception] = None
        self.closed = False

    async def create_container(self, ctx, image, exposed_ports, platform=None, labels=None):
        self.calls.append(("create", image, list(exposed_ports), platform, labels))
        if self.create_error:
            raise self.create_error
        return self.container_id

    async def start_container(self, ctx, container_id):
        self.calls.append(("start", container_id))
        if self.start_error:
            raise self.start_error

    async def stop_and_remove(self, ctx, container_id):
        self.calls.append(("terminate", container_id))
        if self.terminate_error:
            raise self.terminate_error

    async def inspect_ports(self, ctx, container_id):
        self.calls.append(("inspect", container_id))
        return dict(self.ports)

    async def container_logs(self, ctx, container_id):
        self.calls.append(("logs", container_id))
        return self.log_output

    def container_host(self):
        return self.host

    def close(self):
        self.closed = True

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingWaitStrategy:
    """Wait strategy that records calls and optionally fails."""

    def __init__(self, error: Optional[Exception] = None, name: str = "wait", journal=None):
        self.error = error
        self.name = name
        self.journal = journal if journal is not None else []
        self.targets = []

    async def wait_until_ready(self, ctx, target):
        self.targets.append(target)
        self.journal.append(self.name)
        if self.error:
            raise self.error


@pytest.fixture
def fake_runtime():
    """In-memory runtime client creating container ``abc``."""
    return FakeRuntimeClient()


@pytest.fixture
def orchestrator(fake_runtime):
    """Orchestrator bound to the in-memory runtime."""
    return Orchestrator(client=fake_runtime)


@pytest.fixture
def ctx():
    """Background execution context without deadline."""
    return ExecutionContext()


@pytest.fixture
def mock_creator():
    """Mock creator returning a CreatedContainer for the given definition."""
    from containerflow.models.container import CreatedContainer

    creator = AsyncMock()
    creator.create.side_effect = lambda ctx, definition: CreatedContainer(
        id="abc", definition=definition
    )
    return creator


@pytest.fixture
def mock_starter():
    """Mock starter that promotes the created container."""
    from containerflow.models.container import StartedContainer

    starter = AsyncMock()
    starter.start.side_effect = lambda ctx, created: StartedContainer.from_created(created)
    return starter


@pytest.fixture
def mock_docker_client():
    """Mock docker SDK client."""
    client = MagicMock()
    client.api.base_url = "http+docker://localhost"
    client.containers.create.return_value = MagicMock(id="abc123def4567890")
    client.api.inspect_container.return_value = {
        "NetworkSettings": {
            "Ports": {
                "80/tcp": [
                    {"HostIp": "0.0.0.0", "HostPort": "49153"},
                    {"HostIp": "::", "HostPort": "49153"},
                ],
                "443/tcp": None,
            }
        }
    }
    client.api.logs.return_value = b"booting\nServer ready\n"
    return client


@pytest.fixture
def make_runtime():
    """Factory for in-memory runtime clients."""
    return FakeRuntimeClient


@pytest.fixture
def make_wait_strategy():
    """Factory for recording wait strategies."""
    return RecordingWaitStrategy
