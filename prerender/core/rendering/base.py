"""
Renderer Interface
==================

Contract between the dispatcher and a single-slot rendering engine.

The engine reports back through two channels: a ``RendererListener`` given at
construction (engine ready, engine terminated) and each job's ``callback``,
invoked exactly once per ``render_page`` call.
"""

from abc import ABC, abstractmethod
from typing import Protocol

from prerender.models.schemas import Job


class RendererError(Exception):
    """Exception raised when the rendering engine cannot be used."""

    pass


class RendererListener(Protocol):
    """Receives engine lifecycle events."""

    def on_renderer_ready(self) -> None:
        ...

    def on_renderer_terminated(self) -> None:
        ...


class Renderer(ABC):
    """Single-concurrency rendering engine."""

    def __init__(self, listener: RendererListener):
        self.listener = listener

    @property
    @abstractmethod
    def busy(self) -> bool:
        """True while the engine cannot accept a job."""

    @abstractmethod
    def start_engine(self) -> None:
        """Start the engine; ``listener.on_renderer_ready`` follows once usable."""

    @abstractmethod
    def render_page(self, job: Job) -> None:
        """Render ``job.page.url`` and eventually call ``job.callback(job)``."""

    @abstractmethod
    def job_finished(self, job: Job) -> None:
        """Release the render slot held by ``job``."""

    @abstractmethod
    async def terminate(self) -> None:
        """Shut the engine down; ``listener.on_renderer_terminated`` follows."""
