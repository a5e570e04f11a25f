from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import httpx

logger = logging.getLogger(__name__)

ASSET_ID = "the-open-network"


class PriceReader:
    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_usd_price(self) -> Decimal:
        # Best effort: the price never blocks an event.
        try:
            resp = await self._client.get(self.url)
            resp.raise_for_status()
            value = resp.json()[ASSET_ID]["usd"]
            return Decimal(str(value))
        except (httpx.HTTPError, ValueError, KeyError, TypeError, InvalidOperation) as exc:
            logger.error("Error fetching TON price: %s", exc)
            return Decimal(0)
