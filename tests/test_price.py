import asyncio
from decimal import Decimal

import httpx

from ton_balance_monitor.price import PriceReader

PRICE_URL = "https://prices.test/simple/price"


def _reader(handler) -> PriceReader:
    return PriceReader(PRICE_URL, transport=httpx.MockTransport(handler))


def test_price_reads_nested_usd_field() -> None:
    reader = _reader(lambda request: httpx.Response(200, json={"the-open-network": {"usd": 5.43}}))

    assert asyncio.run(reader.get_usd_price()) == Decimal("5.43")


def test_price_falls_back_to_zero_on_http_error() -> None:
    reader = _reader(lambda request: httpx.Response(429, json={"status": "rate limited"}))

    assert asyncio.run(reader.get_usd_price()) == Decimal(0)


def test_price_falls_back_to_zero_on_missing_field() -> None:
    reader = _reader(lambda request: httpx.Response(200, json={"bitcoin": {"usd": 1}}))

    assert asyncio.run(reader.get_usd_price()) == Decimal(0)


def test_price_falls_back_to_zero_on_bad_body() -> None:
    reader = _reader(lambda request: httpx.Response(200, text="<html>"))

    assert asyncio.run(reader.get_usd_price()) == Decimal(0)
