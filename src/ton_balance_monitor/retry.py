from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 2
    delay: float = 2.0
    backoff: float = 1.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("RetryPolicy.attempts must be at least 1")

    async def call(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        description: str = "call",
    ) -> T:
        delay = self.delay
        for attempt in range(self.attempts - 1):
            try:
                return await fn(*args)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning(
                    "%s attempt %d failed: %s. Retrying in %.1fs",
                    description,
                    attempt + 1,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
                delay *= self.backoff
        return await fn(*args)
