"""
Playwright Renderer
===================

Chromium-based rendering engine with a single render slot.

The engine owns one browser and one browser context. Each job opens a page,
loads the application route, optionally waits for the application to declare
itself ready and serializes the resulting DOM. The browser's ``disconnected``
event, whether from a crash or from ``terminate``, is reported to the listener
as engine termination.

With ``render_ready_hook`` set, every page gets a global function of that name
before any application script runs, and the render waits until the application
calls it once its routes have finished loading.
"""

from typing import Optional, Any, Set
import asyncio
import contextlib
import json

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Error as PlaywrightError,
)

from prerender.config.logging import PrerenderLogger
from prerender.config.settings import Settings
from prerender.core.rendering.base import Renderer, RendererError, RendererListener
from prerender.models.schemas import Job
from prerender.utils.urls import join_app_url

STATUS_META_SELECTOR = 'meta[name="prerender-status-code"]'

READY_FLAG = "__prerenderReadyCalled"
READY_HOOK_CHECK = f"() => window.{READY_FLAG} === true"

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


def ready_hook_script(name: str) -> str:
    """Init script defining the global function the application calls once rendered."""
    return f"window[{json.dumps(name)}] = function () {{ window.{READY_FLAG} = true; }};"


class PlaywrightRenderer(Renderer):
    """Renders application routes in headless Chromium, one at a time."""

    def __init__(self, settings: Settings, listener: RendererListener, logger: PrerenderLogger):
        super().__init__(listener)
        self.settings = settings
        self.logger = logger
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._busy = True
        self._terminated = False
        self._renders_in_context = 0
        self._tasks: Set["asyncio.Task[Any]"] = set()

    @property
    def busy(self) -> bool:
        return self._busy

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def start_engine(self) -> None:
        self._spawn(self._start())

    async def _start(self) -> None:
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=BROWSER_ARGS,
            )
            self._browser.on("disconnected", self._on_disconnected)
            self._context = await self._new_context()
        except Exception as e:
            self.logger.log("error", f"Rendering engine failed to start: {e}")
            await self._stop_playwright()
            self._notify_terminated()
            return

        self.logger.log("renderer", "Rendering engine initialized")
        self._busy = False
        self.listener.on_renderer_ready()

    async def _new_context(self) -> BrowserContext:
        if self._browser is None:
            raise RendererError("Rendering engine not started")

        context_options: dict[str, Any] = {
            "viewport": {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
        }
        if self.settings.render_user_agent:
            context_options["user_agent"] = self.settings.render_user_agent

        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.settings.render_timeout)
        self._renders_in_context = 0
        return context

    def render_page(self, job: Job) -> None:
        if job.callback is None:
            raise RendererError(f"Job for {job.url} has no completion callback")
        self._busy = True
        self._spawn(self._render(job))

    async def _render(self, job: Job) -> None:
        page: Optional[Page] = None
        try:
            if self._context is None:
                raise RendererError("Rendering engine not started")

            page = await self._context.new_page()
            if self.settings.render_ready_hook:
                await page.add_init_script(ready_hook_script(self.settings.render_ready_hook))
            response = await page.goto(
                join_app_url(self.settings.app_url, job.page.url),
                wait_until=self.settings.render_wait_until,
                timeout=self.settings.render_timeout,
            )
            if self.settings.render_ready_hook:
                await page.wait_for_function(READY_HOOK_CHECK, timeout=self.settings.render_timeout)
            if self.settings.render_ready_check:
                await page.wait_for_function(
                    self.settings.render_ready_check, timeout=self.settings.render_timeout
                )

            html = await page.content()
            job.page.status_code = await self._status_code(page, response)
            job.page.html = html
        except (PlaywrightError, RendererError) as e:
            self.logger.log("error", f"{job.user} -> Rendering failed: {job.page.url}: {e}")
        finally:
            if page is not None:
                with contextlib.suppress(PlaywrightError):
                    await page.close()
            if job.callback is not None:
                job.callback(job)

    async def _status_code(self, page: Page, response: Any) -> int:
        """Navigation status, overridden by a ``prerender-status-code`` meta tag."""
        status = response.status if response is not None else 200
        meta = await page.query_selector(STATUS_META_SELECTOR)
        if meta is not None:
            content = await meta.get_attribute("content")
            if content and content.strip().isdigit():
                status = int(content.strip())
        return status

    def job_finished(self, job: Job) -> None:
        if self._terminated:
            # A dead engine never takes another job
            return
        self._renders_in_context += 1
        limit = self.settings.max_renders_per_context
        if limit and self._renders_in_context >= limit:
            # Stay busy until the fresh context is up
            self._busy = True
            self._spawn(self._recycle_context())
            return
        self._busy = False

    async def _recycle_context(self) -> None:
        old_context = self._context
        try:
            self._context = await self._new_context()
        except (PlaywrightError, RendererError) as e:
            self.logger.log("error", f"Failed to recycle browser context: {e}")
            await self.terminate()
            return
        if old_context is not None:
            with contextlib.suppress(PlaywrightError):
                await old_context.close()

        self.logger.log("renderer", "Browser context recycled")
        self._busy = False
        self.listener.on_renderer_ready()

    async def terminate(self) -> None:
        self._busy = True
        if self._browser is not None:
            with contextlib.suppress(PlaywrightError):
                await self._browser.close()
        await self._stop_playwright()
        # close() fires "disconnected", this covers engines that never launched
        self._notify_terminated()

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            with contextlib.suppress(PlaywrightError):
                await playwright.stop()

    def _on_disconnected(self, _browser: Any = None) -> None:
        self.logger.log("renderer", "Browser disconnected")
        self._notify_terminated()

    def _notify_terminated(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._busy = True
        self.listener.on_renderer_terminated()
