"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, a stub rendering engine and server instances.
"""

import pytest
from typing import Generator
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from prerender.config import settings as settings_module
from prerender.config.logging import setup_logging
from prerender.config.settings import Settings
from prerender.core.queue.dispatcher import RenderDispatcher
from prerender.core.queue.job_queue import JobQueue
from prerender.server import PrerenderServer

from tests.utils.helpers import make_settings
from tests.utils.mocks import StubRenderer, RecordingListener, stub_renderer_factory, mock_logger


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    setup_logging(make_settings())


@pytest.fixture(autouse=True)
def reset_global_settings() -> Generator[None, None, None]:
    """Keep tests from leaking the module-level settings singleton."""
    saved = settings_module.settings
    yield
    settings_module.settings = saved


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def logger() -> MagicMock:
    return mock_logger()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def renderer(listener: RecordingListener) -> StubRenderer:
    """Stub renderer that is idle and waits for ``complete()`` calls."""
    stub = StubRenderer(listener)
    stub.start_engine()
    stub.ready()
    return stub


@pytest.fixture
def dispatcher(renderer: StubRenderer, logger: MagicMock) -> RenderDispatcher:
    return RenderDispatcher(JobQueue(2), renderer, logger)


@pytest.fixture
def server(test_settings: Settings) -> PrerenderServer:
    """Server whose renderer answers every job with 200 ``ok``."""
    return PrerenderServer(
        test_settings, renderer_factory=stub_renderer_factory(auto_ready=True, auto_complete=True)
    )


@pytest.fixture
def client(server: PrerenderServer) -> Generator[TestClient, None, None]:
    """Test client running the application lifespan."""
    with TestClient(server.app) as test_client:
        yield test_client
