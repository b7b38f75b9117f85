"""
Bounded Job Queue
=================

FIFO queue of pending render jobs with admission control. A full queue
rejects new jobs instead of blocking the caller.
"""

from typing import Deque, Iterator, Optional
from collections import deque

from prerender.models.schemas import Job


class QueueFullError(Exception):
    """Exception raised when a job is offered to a full queue."""

    def __init__(self, max_size: int):
        super().__init__(f"Queue reached the maximum configured size of {max_size}")
        self.max_size = max_size


class JobQueue:
    """Ordered, capacity-limited list of pending render jobs."""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._jobs: Deque[Job] = deque()

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(list(self._jobs))

    @property
    def full(self) -> bool:
        return len(self._jobs) >= self.max_size

    def push(self, job: Job) -> None:
        """
        Append a job to the tail of the queue.

        Raises:
            QueueFullError: If the queue already holds ``max_size`` jobs
        """
        if self.full:
            raise QueueFullError(self.max_size)
        self._jobs.append(job)

    def pop(self) -> Optional[Job]:
        """Remove and return the head job, or ``None`` when empty."""
        if not self._jobs:
            return None
        return self._jobs.popleft()

    def clear(self) -> int:
        """Drop every pending job and return how many were dropped."""
        dropped = len(self._jobs)
        self._jobs.clear()
        return dropped
