"""
Job Timing
==========

Queue-wait and render-duration measurements for completed jobs.
"""

from dataclasses import dataclass
from typing import Optional
import time

from prerender.models.schemas import Job


def now() -> float:
    """Monotonic clock reading in seconds."""
    return time.monotonic()


def elapsed_ms(start: float, end: float) -> int:
    """Whole milliseconds between two clock readings."""
    return int((end - start) * 1000)


@dataclass(frozen=True)
class JobDurations:
    total_ms: int
    render_ms: int

    @property
    def queue_ms(self) -> int:
        return self.total_ms - self.render_ms


def measure(job: Job, end: Optional[float] = None) -> JobDurations:
    """
    Compute how long a job spent overall and inside the renderer.

    A job that was never dispatched counts its whole life as queue time.
    """
    end = now() if end is None else end
    enqueued_at = job.enqueued_at if job.enqueued_at is not None else end
    dispatched_at = job.dispatched_at if job.dispatched_at is not None else end
    return JobDurations(
        total_ms=elapsed_ms(enqueued_at, end),
        render_ms=elapsed_ms(dispatched_at, end),
    )
