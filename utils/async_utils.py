"""
Async helpers

Bounded concurrent gathering and a small elapsed-time context manager.
"""

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, TypeVar
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def gather_with_concurrency(
    *coros: Awaitable[T],
    max_concurrency: int = 10
) -> List[Any]:
    """
    Gather coroutines with at most ``max_concurrency`` running at once

    Args:
        *coros: coroutines to run
        max_concurrency: concurrency limit

    Returns:
        results in input order; failures are returned as exception objects
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run_with_semaphore(coro):
        async with semaphore:
            return await coro

    tasks = [_run_with_semaphore(coro) for coro in coros]
    return await asyncio.gather(*tasks, return_exceptions=True)


class AsyncTimer:
    """Measure the wall time of an ``async with`` block"""

    def __init__(self):
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    async def __aenter__(self):
        self.start_time = datetime.now()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.end_time = datetime.now()

    @property
    def elapsed(self) -> Optional[timedelta]:
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None

    @property
    def elapsed_seconds(self) -> Optional[float]:
        elapsed = self.elapsed
        return elapsed.total_seconds() if elapsed else None
