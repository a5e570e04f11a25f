from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from .retry import RetryPolicy

logger = logging.getLogger(__name__)

NANO = Decimal(10) ** 9


class ProviderError(RuntimeError):
    pass


def from_nano(value: int | str) -> Decimal:
    try:
        nano = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ProviderError(f"Invalid nanoton amount: {value!r}") from exc
    if nano != nano.to_integral_value():
        raise ProviderError(f"Nanoton amount must be an integer: {value!r}")
    return nano / NANO


def format_ton(amount: Decimal) -> str:
    text = format(amount.normalize(), "f")
    return "0" if text in ("-0", "") else text


class TonCenterClient:
    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        retry: RetryPolicy | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.retry = retry or RetryPolicy()
        headers = {"X-API-Key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)
        self._request_id = 0

    async def close(self) -> None:
        await self._client.aclose()

    async def get_balance(self, address: str) -> Decimal | None:
        try:
            raw = await self.retry.call(
                self._call,
                "getAddressBalance",
                {"address": address},
                description=f"getAddressBalance {address}",
            )
            balance = from_nano(raw)
        except Exception as exc:
            logger.error("Error getting balance for address %s: %s", address, exc)
            return None
        logger.info("Balance for address %s: %s", address, format_ton(balance))
        return balance

    async def get_transactions(self, address: str, limit: int = 10) -> list[dict[str, Any]]:
        try:
            result = await self.retry.call(
                self._call,
                "getTransactions",
                {"address": address, "limit": limit},
                description=f"getTransactions {address}",
            )
        except Exception as exc:
            logger.error("Error fetching transactions for address %s: %s", address, exc)
            return []
        if not isinstance(result, list):
            logger.warning("Unexpected transactions payload for %s: %r", address, result)
            return []
        return [tx for tx in result if isinstance(tx, dict)]

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        self._request_id += 1
        resp = await self._client.post(
            self.api_url,
            json={"id": self._request_id, "jsonrpc": "2.0", "method": method, "params": params},
        )
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise ProviderError(f"{method} returned a non-object body")
        if payload.get("ok") is False or payload.get("error"):
            raise ProviderError(f"{method} failed: {payload.get('error') or payload}")
        if "result" not in payload:
            raise ProviderError(f"{method} response has no result")
        return payload["result"]
