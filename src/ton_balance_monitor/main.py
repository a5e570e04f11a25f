from __future__ import annotations

import asyncio
import logging

from .config import load_settings
from .monitor import BalanceMonitor
from .registry import load_wallets


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    wallets = load_wallets(settings.wallets_file)
    monitor = BalanceMonitor(settings, wallets)
    await monitor.run()


def main() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
