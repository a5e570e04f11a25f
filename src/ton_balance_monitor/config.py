from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_TONCENTER_API_URL = "https://toncenter.com/api/v2/jsonRPC"
DEFAULT_PRICE_API_URL = (
    "https://api.coingecko.com/api/v3/simple/price?ids=the-open-network&vs_currencies=usd"
)


@dataclass(frozen=True)
class Settings:
    toncenter_api_key: str
    toncenter_api_url: str
    monitor_interval_seconds: float
    send_balance_changes: bool
    notify_api_url: str | None
    health_check_interval_seconds: float
    redis_url: str | None
    redis_key_prefix: str
    wallets_file: str
    price_api_url: str
    retry_attempts: int
    retry_delay_seconds: float
    max_concurrency: int
    request_spacing_seconds: float
    http_timeout_seconds: float
    log_level: str


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _optional_str(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _optional_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("true", "1", "yes")


def load_settings() -> Settings:
    load_dotenv()
    settings = Settings(
        toncenter_api_key=_required("TONCENTER_API_MAINNET_KEY"),
        toncenter_api_url=os.getenv("TONCENTER_API_URL", DEFAULT_TONCENTER_API_URL).strip(),
        monitor_interval_seconds=_optional_float("MONITOR_INTERVAL", 10.0),
        send_balance_changes=_optional_bool("SAVE_BALANCE_CHANGE", False),
        notify_api_url=_optional_str("NOTIFY_API_URL", "GVND_API_URL"),
        health_check_interval_seconds=_optional_float("HEALTH_CHECK_INTERVAL", 60.0),
        redis_url=_optional_str("REDIS_URL"),
        redis_key_prefix=os.getenv("REDIS_KEY_PREFIX", "").strip(),
        wallets_file=os.getenv("WALLETS_FILE", "wallets.json").strip(),
        price_api_url=os.getenv("PRICE_API_URL", DEFAULT_PRICE_API_URL).strip(),
        retry_attempts=_optional_int("RETRY_ATTEMPTS", 2),
        retry_delay_seconds=_optional_float("RETRY_DELAY_SECONDS", 2.0),
        max_concurrency=_optional_int("MAX_CONCURRENCY", 1),
        request_spacing_seconds=_optional_float("REQUEST_SPACING_SECONDS", 1.0),
        http_timeout_seconds=_optional_float("HTTP_TIMEOUT_SECONDS", 15.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
    if settings.monitor_interval_seconds <= 0:
        raise ValueError("MONITOR_INTERVAL must be greater than zero")
    if settings.health_check_interval_seconds < 0:
        raise ValueError("HEALTH_CHECK_INTERVAL must not be negative")
    if settings.send_balance_changes and not settings.notify_api_url:
        raise ValueError("NOTIFY_API_URL is required when SAVE_BALANCE_CHANGE is enabled")
    if settings.health_check_interval_seconds > 0 and not settings.notify_api_url:
        raise ValueError("NOTIFY_API_URL is required unless HEALTH_CHECK_INTERVAL is 0")
    return settings
