from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class WalletEntry:
    user_id: str
    address: str


@dataclass(frozen=True)
class ChangeEvent:
    user_id: str
    address: str
    balance_change: Decimal
    new_balance: Decimal
    tx_timestamp: int
    usd_price: Decimal
