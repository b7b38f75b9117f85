"""
Prerender Server
================

Lifecycle coordination between the HTTP listener and the rendering engine.

A server process moves through ``starting -> running -> stopped``, passing
through ``draining`` when ``graceful_exit`` is set. The engine is started
together with the listener; when it reports that it is ready the queue is
drained, and when it terminates the server stops accepting connections and
the process exits. Termination is final: the engine is not restarted and
jobs still waiting in the queue are dropped.
"""

from typing import Optional, Callable
import asyncio

import uvicorn

from prerender.api.main import create_app
from prerender.config.logging import PrerenderLogger
from prerender.config.settings import Settings, get_settings
from prerender.core.queue.dispatcher import RenderDispatcher
from prerender.core.queue.job_queue import JobQueue
from prerender.core.rendering.base import Renderer, RendererListener
from prerender.core.rendering.playwright_renderer import PlaywrightRenderer
from prerender.core.static import StaticFileProxy
from prerender.models.schemas import LifecycleState

RendererFactory = Callable[[Settings, RendererListener, PrerenderLogger], Renderer]


class PrerenderServer:
    """One listener, one rendering engine, one job queue."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        renderer_factory: Optional[RendererFactory] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = PrerenderLogger(self.settings, f"Server {self.settings.process_num}")
        self.renderer = (renderer_factory or PlaywrightRenderer)(self.settings, self, self.logger)
        self.queue = JobQueue(self.settings.max_queue_size)
        self.dispatcher = RenderDispatcher(self.queue, self.renderer, self.logger)
        self.static = StaticFileProxy(self.settings, self.logger)
        self.state = LifecycleState.STARTING
        self.app = create_app(self)
        self._http: Optional[uvicorn.Server] = None
        self._closing = False

    def start_renderer(self) -> None:
        """Start the rendering engine, the ready callback follows asynchronously."""
        self.logger.log("server", "Starting rendering engine")
        self.renderer.start_engine()

    def on_renderer_ready(self) -> None:
        if self.state is LifecycleState.STARTING:
            self.state = LifecycleState.RUNNING
        self.dispatcher.try_dispatch()

    def on_renderer_terminated(self) -> None:
        if self._closing:
            return
        self._closing = True

        self.logger.log(
            "server", "Rendering engine terminated, shutting down", **self.dispatcher.stats()
        )
        self.dispatcher.drop_pending()

        if self.settings.graceful_exit:
            self.state = LifecycleState.DRAINING
            self.stop(force=False)
        else:
            self.state = LifecycleState.STOPPED
            self.stop(force=True)

    def stop(self, force: bool = False) -> None:
        """Stop accepting connections; unless ``force``, wait for open ones first."""
        if self._http is None:
            return
        self._http.force_exit = force
        self._http.should_exit = True

    async def close(self) -> None:
        """Release the static file session and the engine."""
        self._closing = True
        await self.static.close()
        await self.renderer.terminate()

    def build_http_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.listen_port,
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=self.settings.graceful_exit_timeout,
        )
        return uvicorn.Server(config)

    async def serve(self) -> None:
        """Serve until the rendering engine terminates or a signal arrives."""
        self._http = self.build_http_server()
        self.logger.log("server", f"Server listening on port {self.settings.listen_port}")
        try:
            await self._http.serve()
        finally:
            self.state = LifecycleState.STOPPED
            self.logger.log("server", "Server stopped")

    def run(self) -> None:
        asyncio.run(self.serve())
