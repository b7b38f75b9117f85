"""
Unit Tests for the Bounded Job Queue
====================================
"""

import pytest
from unittest.mock import MagicMock

from prerender.core.queue.job_queue import JobQueue, QueueFullError
from prerender.models.schemas import Job, Page


def make_job(url: str) -> Job:
    return Job(user="test (agent)", page=Page(url=url), response=MagicMock())


class TestJobQueue:
    """Test FIFO order and admission control."""

    def test_fifo_order(self):
        queue = JobQueue(3)
        for url in ("/a", "/b", "/c"):
            queue.push(make_job(url))

        assert [queue.pop().url for _ in range(3)] == ["/a", "/b", "/c"]
        assert queue.pop() is None

    def test_rejects_when_full_without_changing_length(self):
        queue = JobQueue(2)
        queue.push(make_job("/a"))
        queue.push(make_job("/b"))

        with pytest.raises(QueueFullError) as exc_info:
            queue.push(make_job("/c"))

        assert exc_info.value.max_size == 2
        assert len(queue) == 2
        assert [job.url for job in queue] == ["/a", "/b"]

    def test_zero_capacity_rejects_everything(self):
        queue = JobQueue(0)
        assert queue.full
        with pytest.raises(QueueFullError):
            queue.push(make_job("/a"))

    def test_pop_frees_a_slot(self):
        queue = JobQueue(1)
        queue.push(make_job("/a"))
        queue.pop()
        queue.push(make_job("/b"))
        assert len(queue) == 1

    def test_clear_returns_dropped_count(self):
        queue = JobQueue(5)
        queue.push(make_job("/a"))
        queue.push(make_job("/b"))
        assert queue.clear() == 2
        assert len(queue) == 0
