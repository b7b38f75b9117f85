"""
Unit Tests for Job Timing
=========================
"""

from unittest.mock import MagicMock, patch

from prerender.core.queue.timing import elapsed_ms, measure
from prerender.models.schemas import Job, Page


def make_job(enqueued_at=None, dispatched_at=None) -> Job:
    return Job(
        user="u",
        page=Page(url="/"),
        response=MagicMock(),
        enqueued_at=enqueued_at,
        dispatched_at=dispatched_at,
    )


def test_elapsed_ms_truncates():
    assert elapsed_ms(1.0, 1.2509) == 250


def test_measure_splits_queue_and_render_time():
    durations = measure(make_job(enqueued_at=10.0, dispatched_at=10.75), end=11.0)

    assert durations.total_ms == 1000
    assert durations.render_ms == 250
    assert durations.queue_ms == 750


def test_measure_undispatched_job_counts_as_queue_time():
    durations = measure(make_job(enqueued_at=5.0), end=5.5)

    assert durations.render_ms == 0
    assert durations.queue_ms == 500


def test_measure_defaults_to_current_time():
    with patch("prerender.core.queue.timing.now", return_value=3.0):
        durations = measure(make_job(enqueued_at=1.0, dispatched_at=2.0))

    assert durations.total_ms == 2000
    assert durations.render_ms == 1000
