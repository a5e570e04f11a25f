from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import redis.asyncio as redis

from .config import Settings

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    async def get_balance(self, user_id: str) -> Decimal | None: ...

    async def set_balance(self, user_id: str, balance: Decimal) -> None: ...

    async def get_watermark(self, user_id: str) -> int: ...

    async def set_watermark(self, user_id: str, utime: int) -> None: ...

    async def close(self) -> None: ...


class MemoryStateStore:
    """Per-process state; everything is lost on restart."""

    def __init__(self) -> None:
        self._balances: dict[str, Decimal] = {}
        self._watermarks: dict[str, int] = {}

    async def get_balance(self, user_id: str) -> Decimal | None:
        return self._balances.get(user_id)

    async def set_balance(self, user_id: str, balance: Decimal) -> None:
        self._balances[user_id] = balance

    async def get_watermark(self, user_id: str) -> int:
        return self._watermarks.get(user_id, 0)

    async def set_watermark(self, user_id: str, utime: int) -> None:
        self._watermarks[user_id] = utime

    async def close(self) -> None:
        return None


class RedisStateStore:
    """Redis-backed state with two independent keys per user.

    Balance and watermark writes are separate commands, so a crash between
    them can leave the pair out of step.
    """

    def __init__(self, client: Any, prefix: str = "") -> None:
        self._redis = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> RedisStateStore:
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    def balance_key(self, user_id: str) -> str:
        return f"{self.prefix}balance:{user_id}"

    def watermark_key(self, user_id: str) -> str:
        return f"{self.prefix}last_tx_utime:{user_id}"

    async def get_balance(self, user_id: str) -> Decimal | None:
        raw = await self._redis.get(self.balance_key(user_id))
        if raw is None:
            return None
        try:
            return Decimal(raw)
        except InvalidOperation:
            logger.warning("Ignoring unparseable stored balance for user %s: %r", user_id, raw)
            return None

    async def set_balance(self, user_id: str, balance: Decimal) -> None:
        await self._redis.set(self.balance_key(user_id), str(balance))

    async def get_watermark(self, user_id: str) -> int:
        raw = await self._redis.get(self.watermark_key(user_id))
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring unparseable stored watermark for user %s: %r", user_id, raw)
            return 0

    async def set_watermark(self, user_id: str, utime: int) -> None:
        await self._redis.set(self.watermark_key(user_id), int(utime))

    async def close(self) -> None:
        await self._redis.aclose()


def create_state_store(settings: Settings) -> StateStore:
    if settings.redis_url:
        logger.info("Using Redis state store")
        return RedisStateStore.from_url(settings.redis_url, prefix=settings.redis_key_prefix)
    logger.info("Using in-memory state store; state resets on restart")
    return MemoryStateStore()
