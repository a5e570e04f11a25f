from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .toncenter import format_ton
from .types import ChangeEvent


def latest_utime(transactions: Iterable[dict[str, Any]] | None) -> int:
    latest = 0
    if not transactions:
        return latest
    for tx in transactions:
        if not isinstance(tx, dict):
            continue
        try:
            utime = int(tx.get("utime", 0) or 0)
        except (TypeError, ValueError):
            continue
        if utime > latest:
            latest = utime
    return latest


def build_event_payload(event: ChangeEvent) -> dict[str, Any]:
    return {
        "userId": event.user_id,
        "walletAddress": event.address,
        "balance": format_ton(event.new_balance),
        "change": format_ton(event.balance_change),
        "txTimestamp": event.tx_timestamp,
        "price": float(event.usd_price),
    }


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"
