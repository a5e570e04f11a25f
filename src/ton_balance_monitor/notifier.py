from __future__ import annotations

import logging

import httpx

from .formatting import build_event_payload
from .types import ChangeEvent

logger = logging.getLogger(__name__)

UPDATE_BALANCE_METHOD = "updateWalletBalance"
HEALTH_CHECK_METHOD = "healthCheck"


class WebhookNotifier:
    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def send_balance_change(self, event: ChangeEvent) -> bool:
        try:
            response = await self._client.post(
                self.base_url,
                params={"method": UPDATE_BALANCE_METHOD},
                json=build_event_payload(event),
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to send balance change for user %s: %s", event.user_id, exc)
            return False

        if response.status_code != 200:
            logger.error(
                "Balance change for user %s rejected: status=%d body=%s",
                event.user_id,
                response.status_code,
                response.text[:200],
            )
            return False

        logger.info("Balance change sent for user %s: %s", event.user_id, response.text[:200])
        return True

    async def health_check(self) -> bool:
        try:
            response = await self._client.post(self.base_url, params={"method": HEALTH_CHECK_METHOD})
        except httpx.HTTPError as exc:
            logger.warning("Health check failed: %s", exc)
            return False

        if response.status_code != 200:
            logger.warning("Health check failed: status=%d", response.status_code)
            return False

        logger.info("Health check ok")
        return True
