"""Unit tests for the container orchestrator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import containerflow
from containerflow.core.context import ExecutionContext, with_context, with_timeout
from containerflow.models.container import ContainerInfo, CreatedContainer, StartedContainer
from containerflow.models.errors import (
    ContainerCreateError,
    ContainerStartError,
    DeadlineExceededError,
    ExecutionCancelledError,
    ReadinessTimeoutError,
    RuntimeUnavailableError,
)
from containerflow.services.container import LazyDockerRuntimeClient
from containerflow.services.creator import ContainerImageCreator
from containerflow.services.definition import (
    GenericContainerDefinition,
    waiting_for,
    with_exposed_ports,
    wrapping_creator,
    wrapping_starter,
)
from containerflow.services.image import from_image, with_image_platform
from containerflow.services.orchestrator import (
    Orchestrator,
    get_default_orchestrator,
    set_default_orchestrator,
)
from containerflow.services.starter import RuntimeContainerStarter


class LogWaitStrategy:
    """Polls container logs until a line appears or the startup timeout passes."""

    def __init__(self, line: str, startup_timeout: float, poll_interval: float = 0.01):
        self.line = line
        self.startup_timeout = startup_timeout
        self.poll_interval = poll_interval
        self.polls = 0

    async def wait_until_ready(self, ctx, target):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        while True:
            self.polls += 1
            if self.line in await target.logs():
                return
            if loop.time() >= deadline:
                raise ReadinessTimeoutError(timeout=self.startup_timeout)
            await asyncio.sleep(self.poll_interval)


class TestRun:
    """Tests for Run."""

    @pytest.mark.asyncio
    async def test_run_creates_then_starts(self, orchestrator, fake_runtime):
        definition = orchestrator.new_generic_container(
            from_image("nginx"), with_exposed_ports("80/tcp")
        )

        started = await orchestrator.run(definition)

        assert isinstance(started, StartedContainer)
        assert started.id == "abc"
        assert started.definition is definition
        assert fake_runtime.call_names() == ["create", "start"]

    @pytest.mark.asyncio
    async def test_started_id_matches_created_id(self, orchestrator):
        created_ids = []

        def record(inner):
            async_mock = AsyncMock()

            async def create(ctx, definition):
                created = await inner.create(ctx, definition)
                created_ids.append(created.id)
                return created

            async_mock.create.side_effect = create
            return async_mock

        definition = orchestrator.new_generic_container(
            from_image("nginx"), wrapping_creator(record)
        )
        started = await orchestrator.run(definition)

        assert created_ids == [started.id]
        assert started.id

    @pytest.mark.asyncio
    async def test_create_failure_short_circuits(self, orchestrator, mock_starter):
        error = ContainerCreateError("image pull denied")
        failing_creator = AsyncMock()
        failing_creator.create.side_effect = error
        definition = orchestrator.new_generic_container(
            from_image("nginx"),
            wrapping_creator(lambda inner: failing_creator),
            wrapping_starter(lambda inner: mock_starter),
        )

        with pytest.raises(ContainerCreateError) as exc_info:
            await orchestrator.run(definition)

        assert exc_info.value is error
        assert exc_info.value.container is None
        assert failing_creator.create.await_count == 1
        mock_starter.start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_start_failure_carries_created_container(self, orchestrator, fake_runtime):
        fake_runtime.start_error = ContainerStartError("port already allocated")
        definition = orchestrator.new_generic_container(from_image("nginx"))

        with pytest.raises(ContainerStartError) as exc_info:
            await orchestrator.run(definition)

        created = exc_info.value.container
        assert type(created) is CreatedContainer
        assert created.id == "abc"
        # No automatic rollback
        assert "terminate" not in fake_runtime.call_names()

    @pytest.mark.asyncio
    async def test_start_failure_skips_readiness(
        self, orchestrator, fake_runtime, make_wait_strategy
    ):
        strategy = make_wait_strategy()
        fake_runtime.start_error = ContainerStartError("boom")
        definition = orchestrator.new_generic_container(
            from_image("nginx"), waiting_for(strategy)
        )

        with pytest.raises(ContainerStartError):
            await orchestrator.run(definition)
        assert strategy.targets == []

    @pytest.mark.asyncio
    async def test_readiness_timeout_returns_started_container_with_error(
        self, orchestrator, fake_runtime
    ):
        strategy = LogWaitStrategy("Server ready", startup_timeout=0.05)
        definition = orchestrator.new_generic_container(
            from_image("nginx"), waiting_for(strategy)
        )

        with pytest.raises(ReadinessTimeoutError) as exc_info:
            await orchestrator.run(definition)

        started = exc_info.value.container
        assert isinstance(started, StartedContainer)
        assert started.id == "abc"
        assert strategy.polls >= 1

    @pytest.mark.asyncio
    async def test_run_honours_deadline(self, orchestrator, fake_runtime):
        strategy = LogWaitStrategy("never", startup_timeout=10)
        definition = orchestrator.new_generic_container(
            from_image("nginx"), waiting_for(strategy)
        )

        with pytest.raises(DeadlineExceededError) as exc_info:
            await orchestrator.run(definition, with_timeout(0.05))
        assert isinstance(exc_info.value.container, StartedContainer)

    @pytest.mark.asyncio
    async def test_run_honours_cancellation(self, orchestrator):
        ctx = ExecutionContext()
        ctx.cancel()
        definition = orchestrator.new_generic_container(from_image("nginx"))

        with pytest.raises(ExecutionCancelledError):
            await orchestrator.run(definition, with_context(ctx))

    @pytest.mark.asyncio
    async def test_execution_context_reaches_stages(self, orchestrator, mock_creator, mock_starter):
        ctx = ExecutionContext(timeout=30)
        definition = orchestrator.new_generic_container(
            from_image("nginx"),
            wrapping_creator(lambda inner: mock_creator),
            wrapping_starter(lambda inner: mock_starter),
        )

        await orchestrator.run(definition, with_context(ctx))

        assert mock_creator.create.await_args.args[0] is ctx
        assert mock_starter.start.await_args.args[0] is ctx

    @pytest.mark.asyncio
    async def test_hand_built_definition_uses_orchestrator_stages(self, fake_runtime):
        orchestrator = Orchestrator(client=fake_runtime)
        definition = GenericContainerDefinition(from_image("nginx"))

        started = await orchestrator.run(definition)

        assert started.id == "abc"
        assert fake_runtime.call_names() == ["create", "start"]
        assert definition.runtime is fake_runtime

    @pytest.mark.asyncio
    async def test_hand_built_definition_waits_with_orchestrator_runtime(
        self, fake_runtime, make_wait_strategy
    ):
        orchestrator = Orchestrator(client=fake_runtime)
        strategy = make_wait_strategy()
        definition = GenericContainerDefinition(
            from_image("nginx"), starter=RuntimeContainerStarter(fake_runtime)
        )
        waiting_for(strategy)(definition)

        started = await orchestrator.run(definition)

        assert started.id == "abc"
        assert await strategy.targets[0].host() == "127.0.0.1"
        assert fake_runtime.call_names() == ["create", "start"]

    @pytest.mark.asyncio
    async def test_readiness_without_runtime_raises_typed_error(
        self, fake_runtime, make_wait_strategy
    ):
        orchestrator = Orchestrator(client=fake_runtime)
        definition = GenericContainerDefinition(
            from_image("nginx"),
            creator=ContainerImageCreator(fake_runtime),
            starter=RuntimeContainerStarter(fake_runtime),
        )
        waiting_for(make_wait_strategy())(definition)
        definition.freeze()

        with pytest.raises(RuntimeUnavailableError) as exc_info:
            await orchestrator.run(definition)

        assert isinstance(exc_info.value.container, StartedContainer)
        assert exc_info.value.container.id == "abc"


class TestInfo:
    """Tests for Info."""

    @pytest.mark.asyncio
    async def test_info_reports_host_and_ports(self, orchestrator, fake_runtime):
        started = await orchestrator.run(
            orchestrator.new_generic_container(from_image("nginx"), with_exposed_ports("80/tcp"))
        )

        info = await orchestrator.info(started)

        assert isinstance(info, ContainerInfo)
        assert info.host == "127.0.0.1"
        assert info.mapped_port("80/tcp") == "32768"
        assert info.mapped_port("80") == "32768"

    @pytest.mark.asyncio
    async def test_info_is_idempotent_and_side_effect_free(self, orchestrator, fake_runtime):
        started = await orchestrator.run(orchestrator.new_generic_container(from_image("nginx")))
        before = fake_runtime.call_names()

        first = await orchestrator.info(started)
        second = await orchestrator.info(started)

        assert first == second
        assert fake_runtime.call_names()[len(before):] == ["inspect", "inspect"]


class TestTerminate:
    """Tests for Terminate."""

    @pytest.mark.asyncio
    async def test_terminate_uses_definition_terminator(self, orchestrator, fake_runtime):
        started = await orchestrator.run(orchestrator.new_generic_container(from_image("nginx")))
        await orchestrator.terminate(started)
        assert fake_runtime.calls[-1] == ("terminate", "abc")

    @pytest.mark.asyncio
    async def test_terminate_after_failed_start(self, orchestrator, fake_runtime):
        fake_runtime.start_error = ContainerStartError("boom")
        with pytest.raises(ContainerStartError) as exc_info:
            await orchestrator.run(orchestrator.new_generic_container(from_image("nginx")))

        await orchestrator.terminate(exc_info.value.container)
        assert fake_runtime.call_names() == ["create", "start", "terminate"]


class TestEndToEnd:
    """Full nginx-style provisioning against an in-memory runtime."""

    @pytest.mark.asyncio
    async def test_nginx_scenario(self, make_runtime):
        runtime = make_runtime(
            container_id="abc", ports={"80/tcp": "49153"}, logs="Server ready\n"
        )
        orchestrator = Orchestrator(client=runtime)
        strategy = LogWaitStrategy("Server ready", startup_timeout=10)

        container = await orchestrator.run(
            orchestrator.new_generic_container(
                from_image("nginx", with_image_platform("linux/amd64")),
                with_exposed_ports("80/tcp"),
                waiting_for(strategy),
            ),
            with_context(ExecutionContext(timeout=30)),
        )
        info = await orchestrator.info(container, with_context(ExecutionContext(timeout=30)))

        assert container.id == "abc"
        assert strategy.polls == 1
        assert f"http://{info.host}:{info.mapped_port('80')}" == "http://127.0.0.1:49153"
        create_call = runtime.calls[0]
        assert create_call[1] == "nginx"
        assert create_call[2] == ["80/tcp"]
        assert str(create_call[3]) == "linux/amd64"


class TestDefaultOrchestrator:
    """Tests for the process-wide default."""

    def test_default_is_built_lazily_once(self):
        previous = set_default_orchestrator(None)
        try:
            first = get_default_orchestrator()
            assert first is get_default_orchestrator()
            assert isinstance(first.client, LazyDockerRuntimeClient)
        finally:
            set_default_orchestrator(previous)

    @pytest.mark.asyncio
    async def test_module_functions_use_default(self, make_runtime):
        runtime = make_runtime()
        previous = set_default_orchestrator(Orchestrator(client=runtime))
        try:
            container = await containerflow.run(
                containerflow.new_generic_container(
                    containerflow.from_image("nginx"),
                    containerflow.with_exposed_ports("80/tcp"),
                )
            )
            info = await containerflow.info(container)
            await containerflow.terminate(container)
        finally:
            set_default_orchestrator(previous)

        assert info.mapped_port("80") == "32768"
        assert runtime.call_names() == ["create", "start", "inspect", "terminate"]

    def test_close_releases_client(self, orchestrator, fake_runtime):
        orchestrator.close()
        assert fake_runtime.closed is True

    def test_lazy_client_does_not_connect_until_used(self):
        with patch(
            "containerflow.services.container.client.DockerClientFactory.create"
        ) as create:
            orchestrator = Orchestrator()
            orchestrator.new_generic_container(from_image("nginx"))
            create.assert_not_called()

    def test_custom_logger_is_used_by_decorators(self, fake_runtime):
        logger = MagicMock()
        orchestrator = Orchestrator(client=fake_runtime, logger=logger)
        definition = orchestrator.new_generic_container(from_image("nginx"))
        assert definition.creator.logger is logger
        assert definition.terminator.logger is logger
