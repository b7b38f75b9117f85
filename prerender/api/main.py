"""
FastAPI Application
==================

Catch-all HTTP endpoint for the prerender server.

Every request is classified into one of three dispositions: rejected
(anything but GET), static file (the URL matches ``files_match``) or render
job. Render jobs wait on their response future until the dispatcher writes
the rendered page into it.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Pattern, TYPE_CHECKING
import re

from fastapi import FastAPI, Request
from fastapi.responses import Response

from prerender.core.queue.job_queue import QueueFullError
from prerender.models.schemas import Disposition
from prerender.utils.responses import method_not_allowed, service_unavailable
from prerender.utils.urls import client_identity, normalize_url, request_target

if TYPE_CHECKING:
    from prerender.server import PrerenderServer


def classify_request(method: str, url: str, files_match: Pattern[str]) -> Disposition:
    """Decide what to do with a request for the normalized ``url``."""
    if method != "GET":
        return Disposition.REJECT
    if files_match.search(url):
        return Disposition.STATIC
    return Disposition.RENDER


def create_app(server: "PrerenderServer") -> FastAPI:
    """
    Build the FastAPI application for a server instance.

    The application lifespan starts the rendering engine and, on the way
    out, closes the static file session and the engine.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        server.start_renderer()
        try:
            yield
        finally:
            await server.close()

    app = FastAPI(
        title=server.settings.app_name,
        version=server.settings.app_version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.server = server

    files_match = re.compile(server.settings.files_match)
    logger = server.logger

    async def on_request(request: Request) -> Response:
        user = client_identity(
            request.headers.get("x-forwarded-for"),
            request.client.host if request.client else None,
            request.headers.get("user-agent"),
        )
        url = normalize_url(request_target(request.scope))
        disposition = classify_request(request.method, url, files_match)

        if disposition is Disposition.REJECT:
            logger.log("error", f"{user} -> Received an unsupported {request.method} request: {url}")
            return method_not_allowed()

        if disposition is Disposition.STATIC:
            if server.settings.serve_files_log:
                logger.log("server", f"{user} -> Serving file: {url}")
            return await server.static.serve(url, user)

        logger.log("server", f"{user} -> Enqueueing route: {url}")
        job = server.dispatcher.create_job(user, url)
        try:
            server.dispatcher.enqueue(job)
        except QueueFullError:
            return service_unavailable()
        return await job.response

    # No method filter, every verb reaches classify_request
    app.add_route("/{path:path}", on_request, include_in_schema=False)
    return app
