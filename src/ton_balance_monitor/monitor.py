from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .config import Settings
from .formatting import latest_utime, short_address
from .notifier import WebhookNotifier
from .pool import ConcurrencyPolicy
from .price import PriceReader
from .retry import RetryPolicy
from .state import StateStore, create_state_store
from .toncenter import TonCenterClient, format_ton
from .types import ChangeEvent, WalletEntry

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    ticks: int = 0
    ticks_skipped: int = 0
    read_failures: int = 0
    changes_detected: int = 0
    events_sent: int = 0
    events_failed: int = 0
    wallet_errors: int = 0


class BalanceMonitor:
    def __init__(
        self,
        settings: Settings,
        wallets: Iterable[WalletEntry],
        store: StateStore | None = None,
    ) -> None:
        self.settings = settings
        self.wallets = list(wallets)
        self.metrics = Metrics()
        self.store = store if store is not None else create_state_store(settings)
        self.ton = TonCenterClient(
            settings.toncenter_api_url,
            settings.toncenter_api_key,
            retry=RetryPolicy(
                attempts=settings.retry_attempts,
                delay=settings.retry_delay_seconds,
            ),
            timeout=settings.http_timeout_seconds,
        )
        self.prices = PriceReader(settings.price_api_url, timeout=settings.http_timeout_seconds)
        self.notifier = (
            WebhookNotifier(settings.notify_api_url, timeout=settings.http_timeout_seconds)
            if settings.notify_api_url
            else None
        )
        self.policy = ConcurrencyPolicy(
            max_workers=settings.max_concurrency,
            spacing=settings.request_spacing_seconds,
        )
        self._tick_running = False
        self._tick_tasks: set[asyncio.Task[bool]] = set()

    async def run(self) -> None:
        logger.info(
            "Starting the monitoring (interval: %s seconds, wallets=%d, notifications=%s)",
            self.settings.monitor_interval_seconds,
            len(self.wallets),
            "on" if self.settings.send_balance_changes else "off",
        )
        loops: list[asyncio.Task[None]] = []
        try:
            await self.initialize()
            loops.append(asyncio.create_task(self._balance_loop()))
            if self.settings.health_check_interval_seconds > 0:
                loops.append(asyncio.create_task(self._health_loop()))
            await asyncio.gather(*loops)
        finally:
            pending = loops + list(self._tick_tasks)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            await self.close()

    async def close(self) -> None:
        await self.ton.close()
        await self.prices.close()
        if self.notifier is not None:
            await self.notifier.close()
        await self.store.close()

    async def initialize(self) -> None:
        """Seed the store so the first tick compares against a real baseline."""
        logger.info("Initializing balances for %d wallets", len(self.wallets))
        await self.policy.run(self.wallets, self._seed_wallet)

    async def _seed_wallet(self, entry: WalletEntry) -> None:
        try:
            balance = await self.ton.get_balance(entry.address)
            if balance is None:
                self.metrics.read_failures += 1
                logger.warning("No initial balance for user %s; will seed on next tick", entry.user_id)
                return
            await self.store.set_balance(entry.user_id, balance)

            if await self.store.get_watermark(entry.user_id) == 0:
                transactions = await self.ton.get_transactions(entry.address, 1)
                utime = latest_utime(transactions)
                if utime > 0:
                    await self.store.set_watermark(entry.user_id, utime)
        except Exception as exc:
            self.metrics.wallet_errors += 1
            logger.exception("Error initializing wallet for user %s: %s", entry.user_id, exc)

    async def run_tick(self) -> bool:
        if self._tick_running:
            self.metrics.ticks_skipped += 1
            logger.warning("Previous balance check still running; skipping this tick")
            return False

        self._tick_running = True
        self.metrics.ticks += 1
        try:
            events = await self.policy.run(self.wallets, self.check_wallet)
        finally:
            self._tick_running = False

        logger.debug(
            "Tick %d done: %d wallets, %d events",
            self.metrics.ticks,
            len(self.wallets),
            sum(1 for e in events if e is not None),
        )
        return True

    async def check_wallet(self, entry: WalletEntry) -> ChangeEvent | None:
        try:
            return await self._check_wallet(entry)
        except Exception as exc:
            self.metrics.wallet_errors += 1
            logger.exception("Error monitoring address for user %s: %s", entry.user_id, exc)
            return None

    async def _check_wallet(self, entry: WalletEntry) -> ChangeEvent | None:
        current = await self.ton.get_balance(entry.address)
        if current is None:
            self.metrics.read_failures += 1
            return None

        stored = await self.store.get_balance(entry.user_id)
        if stored is None:
            await self.store.set_balance(entry.user_id, current)
            logger.info("Baseline balance for user %s: %s", entry.user_id, format_ton(current))
            return None
        if current == stored:
            return None

        change = current - stored
        await self.store.set_balance(entry.user_id, current)
        self.metrics.changes_detected += 1
        logger.info(
            "Balance change detected for wallet %s (user %s): %s",
            short_address(entry.address),
            entry.user_id,
            format_ton(change),
        )

        transactions = await self.ton.get_transactions(entry.address, 1)
        utime = latest_utime(transactions)
        watermark = await self.store.get_watermark(entry.user_id)
        if utime == 0 or utime <= watermark:
            logger.info(
                "No new transaction for user %s (latest=%d, last reported=%d)",
                entry.user_id,
                utime,
                watermark,
            )
            return None
        await self.store.set_watermark(entry.user_id, utime)

        if not self.settings.send_balance_changes or self.notifier is None:
            return None

        event = ChangeEvent(
            user_id=entry.user_id,
            address=entry.address,
            balance_change=change,
            new_balance=current,
            tx_timestamp=utime,
            usd_price=await self.prices.get_usd_price(),
        )
        logger.info("Sending balance change for user %s...", entry.user_id)
        if await self.notifier.send_balance_change(event):
            self.metrics.events_sent += 1
        else:
            self.metrics.events_failed += 1
        return event

    async def _balance_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.monitor_interval_seconds)
            task = asyncio.create_task(self.run_tick())
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.health_check_interval_seconds)
            if self.notifier is not None:
                await self.notifier.health_check()
            logger.info(
                (
                    "health ticks=%d skipped=%d read_failures=%d changes=%d "
                    "events_sent=%d events_failed=%d wallet_errors=%d"
                ),
                self.metrics.ticks,
                self.metrics.ticks_skipped,
                self.metrics.read_failures,
                self.metrics.changes_detected,
                self.metrics.events_sent,
                self.metrics.events_failed,
                self.metrics.wallet_errors,
            )
