"""
Data Models
===========

Core data structures for render jobs and server state.

A ``Job`` is created when a render request is admitted, handed to the renderer
when the render slot is free and discarded once its response is written.
"""

from typing import Optional, Callable, Any, TYPE_CHECKING
from dataclasses import dataclass, field
from enum import Enum
import asyncio

if TYPE_CHECKING:
    from starlette.responses import Response

DEFAULT_STATUS_CODE = 500
DEFAULT_HTML = "500 Internal Server Error"


class Disposition(str, Enum):
    """Outcome of classifying an inbound request."""

    REJECT = "reject"
    STATIC = "static"
    RENDER = "render"


class LifecycleState(str, Enum):
    """Lifecycle of a server process."""

    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class JobState(str, Enum):
    """Where a job sits between admission and response."""

    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


@dataclass
class Page:
    """Render target and result. Defaults stand in until the renderer writes a result."""

    url: str
    status_code: int = DEFAULT_STATUS_CODE
    html: str = DEFAULT_HTML


@dataclass(eq=False)
class Job:
    """One admitted render request."""

    user: str
    page: Page
    response: "asyncio.Future[Response]"
    callback: Optional[Callable[["Job"], Any]] = None
    enqueued_at: Optional[float] = None
    dispatched_at: Optional[float] = None
    state: JobState = field(default=JobState.QUEUED)

    @property
    def url(self) -> str:
        return self.page.url
