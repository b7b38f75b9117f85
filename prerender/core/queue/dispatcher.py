"""
Render Dispatcher
=================

Admission, dispatch and completion of render jobs.

Jobs wait in a bounded FIFO queue and are handed to the renderer one at a
time. The renderer's ``busy`` flag is the only gate: ``try_dispatch`` runs
after every admission, when the renderer reports it is ready and after every
completion, and does nothing unless the renderer is idle and a job is waiting.
Everything here runs on the event loop thread, so no locking is needed.
"""

from typing import Optional, Any
import asyncio

from prerender.config.logging import PrerenderLogger
from prerender.core.queue.job_queue import JobQueue, QueueFullError
from prerender.core.queue.timing import measure, now
from prerender.core.rendering.base import Renderer
from prerender.models.schemas import Job, JobState, Page
from prerender.utils.responses import page_response


class RenderDispatcher:
    """Moves jobs from the queue through the renderer to the client."""

    def __init__(self, queue: JobQueue, renderer: Renderer, logger: PrerenderLogger):
        self.queue = queue
        self.renderer = renderer
        self.logger = logger
        self.in_flight: Optional[Job] = None

    def create_job(self, user: str, url: str) -> Job:
        """Create a job whose response future belongs to the running loop."""
        loop = asyncio.get_running_loop()
        return Job(
            user=user,
            page=Page(url=url),
            response=loop.create_future(),
            callback=self.send_page,
        )

    def enqueue(self, job: Job) -> None:
        """
        Admit a job and try to start it right away.

        Raises:
            QueueFullError: If the queue is at capacity; the job is discarded
        """
        try:
            job.enqueued_at = now()
            self.queue.push(job)
        except QueueFullError:
            self.logger.log(
                "error",
                f"{job.user} -> Request failed, queue reached the maximum configured size: "
                f"{job.url}",
            )
            raise
        self.try_dispatch()

    def try_dispatch(self) -> Optional[Job]:
        """Hand the head job to the renderer if it is idle."""
        if self.renderer.busy:
            return None

        job = self.queue.pop()
        if job is None:
            return None
        job.dispatched_at = now()
        job.state = JobState.IN_FLIGHT
        self.in_flight = job
        self.logger.log("server", f"{job.user} -> Rendering route: {job.url}")
        self.renderer.render_page(job)
        return job

    def send_page(self, job: Job) -> None:
        """Write the rendered page to the client and free the render slot."""
        durations = measure(job)
        self.logger.log(
            "server",
            f"{job.user} -> Rendered page in {durations.total_ms}ms "
            f"({durations.queue_ms}ms in queue + {durations.render_ms}ms rendering) "
            f"with status code {job.page.status_code}: {job.url}",
        )

        # The client may have gone away while the job waited
        if not job.response.done():
            job.response.set_result(page_response(job.page))

        job.state = JobState.COMPLETED
        if self.in_flight is job:
            self.in_flight = None

        self.renderer.job_finished(job)
        self.try_dispatch()

    def drop_pending(self) -> int:
        """Forget every queued job; their clients never get a response."""
        dropped = self.queue.clear()
        if dropped:
            self.logger.log("error", f"Dropping {dropped} queued jobs")
        return dropped

    def stats(self) -> dict[str, Any]:
        return {
            "queued": len(self.queue),
            "max_queue_size": self.queue.max_size,
            "in_flight": self.in_flight.url if self.in_flight else None,
            "renderer_busy": self.renderer.busy,
        }
