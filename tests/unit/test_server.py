"""
Unit Tests for the Server Lifecycle
===================================

Renderer ready and termination handling, graceful and immediate exit.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from prerender.models.schemas import LifecycleState
from prerender.server import PrerenderServer

from tests.utils.helpers import make_settings
from tests.utils.mocks import StubRenderer, stub_renderer_factory


def make_server(**overrides) -> PrerenderServer:
    server = PrerenderServer(make_settings(**overrides), renderer_factory=stub_renderer_factory())
    server._http = MagicMock(should_exit=False, force_exit=False)
    return server


class TestLifecycle:
    """Test state transitions driven by the renderer."""

    def test_initial_state(self):
        server = make_server()

        assert server.state is LifecycleState.STARTING
        assert isinstance(server.renderer, StubRenderer)
        assert server.renderer.listener is server
        assert server.queue.max_size == 10

    def test_start_renderer(self):
        server = make_server()

        server.start_renderer()

        assert server.renderer.started

    @pytest.mark.asyncio
    async def test_ready_drains_jobs_queued_before_start(self):
        server = make_server()
        first = server.dispatcher.create_job("u", "/first")
        second = server.dispatcher.create_job("u", "/second")
        server.dispatcher.enqueue(first)
        server.dispatcher.enqueue(second)
        assert server.renderer.rendered == []

        server.renderer.ready()

        assert server.state is LifecycleState.RUNNING
        assert server.renderer.rendered == [first]
        assert list(server.queue) == [second]

    @pytest.mark.asyncio
    async def test_graceful_termination_drains(self):
        server = make_server(graceful_exit=True)
        server.renderer.ready()
        server.dispatcher.enqueue(server.dispatcher.create_job("u", "/busy"))
        server.dispatcher.enqueue(server.dispatcher.create_job("u", "/waiting"))

        server.on_renderer_terminated()

        assert server.state is LifecycleState.DRAINING
        assert server._http.should_exit is True
        assert server._http.force_exit is False
        assert len(server.queue) == 0

    def test_immediate_termination(self):
        server = make_server(graceful_exit=False)

        server.on_renderer_terminated()

        assert server.state is LifecycleState.STOPPED
        assert server._http.should_exit is True
        assert server._http.force_exit is True

    def test_termination_handled_once(self):
        server = make_server(graceful_exit=True)
        server.on_renderer_terminated()
        server._http.force_exit = "untouched"

        server.on_renderer_terminated()

        assert server._http.force_exit == "untouched"

    def test_stop_without_listener_is_a_no_op(self):
        server = make_server()
        server._http = None

        server.stop(force=True)

    @pytest.mark.asyncio
    async def test_close_terminates_renderer_without_exit_request(self):
        server = make_server()
        server.static.close = AsyncMock()

        await server.close()

        server.static.close.assert_awaited_once()
        assert server.renderer.terminated
        assert server._http.should_exit is False


class TestHttpServer:
    """Test listener configuration."""

    def test_listens_on_port_plus_process_num(self):
        server = make_server(port=3000, process_num=2, graceful_exit_timeout=5)

        http = server.build_http_server()

        assert http.config.port == 3002
        assert http.config.timeout_graceful_shutdown == 5
        assert http.config.log_config is None
