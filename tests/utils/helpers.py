"""
Test Helpers
============

Helper functions for common testing operations.
"""

import asyncio
import time
from typing import Any, Callable, Iterable

from prerender.config.settings import Settings
from prerender.models.schemas import Job

__all__ = ["make_settings", "wait_for_condition", "drain_tasks", "job_urls"]


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment and any ``.env`` file."""
    values = {
        "environment": "testing",
        "log_level": "DEBUG",
        "app_url": "http://app.test/",
        "max_queue_size": 10,
        "graceful_exit": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def wait_for_condition(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.01,
    error_message: str = "Condition not met within timeout",
) -> None:
    """Wait for a condition to become true."""
    start_time = time.time()

    while time.time() - start_time < timeout:
        if condition():
            return
        await asyncio.sleep(interval)

    raise TimeoutError(error_message)


async def drain_tasks(owner: Any) -> None:
    """Await background tasks an object keeps in ``_tasks`` until none are left."""
    while owner._tasks:
        await asyncio.gather(*list(owner._tasks))


def job_urls(jobs: Iterable[Job]) -> list[str]:
    return [job.page.url for job in jobs]
