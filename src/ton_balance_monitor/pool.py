from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ConcurrencyPolicy:
    """Bounded worker pool with a minimum gap between call starts.

    ``max_workers=1`` gives sequential, throttled iteration; larger values fan
    out while still pacing the shared provider.
    """

    def __init__(self, max_workers: int = 1, spacing: float = 0.0) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if spacing < 0:
            raise ValueError("spacing must not be negative")
        self.max_workers = max_workers
        self.spacing = spacing

    async def run(self, items: Sequence[T], fn: Callable[[T], Awaitable[R]]) -> list[R]:
        semaphore = asyncio.Semaphore(self.max_workers)
        pace_lock = asyncio.Lock()
        loop = asyncio.get_running_loop()
        next_start = loop.time()

        async def pace() -> None:
            nonlocal next_start
            async with pace_lock:
                wait = next_start - loop.time()
                if wait > 0:
                    await asyncio.sleep(wait)
                next_start = loop.time() + self.spacing

        async def worker(item: T) -> R:
            async with semaphore:
                await pace()
                return await fn(item)

        tasks = [asyncio.ensure_future(worker(item)) for item in items]
        if not tasks:
            return []
        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise
        return [task.result() for task in tasks]
