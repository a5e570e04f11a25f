from __future__ import annotations

import json
import logging
from pathlib import Path

from .types import WalletEntry

logger = logging.getLogger(__name__)


class RegistryError(ValueError):
    pass


def load_wallets(path: str | Path) -> list[WalletEntry]:
    """Read the ``{userId: address}`` mapping from a JSON file.

    Missing files and malformed content are fatal, so errors propagate.
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RegistryError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise RegistryError(f"{path} must contain a JSON object of userId -> address")

    wallets: list[WalletEntry] = []
    for user_id, address in data.items():
        if not isinstance(address, str) or not address.strip():
            raise RegistryError(f"Wallet address for user {user_id!r} must be a non-empty string")
        wallets.append(WalletEntry(user_id=str(user_id), address=address.strip()))

    logger.info("Loaded %d wallet addresses from %s", len(wallets), path)
    return wallets
