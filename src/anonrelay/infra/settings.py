"""Relay configuration loaded from the environment.

Required:
- BOT_TOKEN: Telegram Bot API token
- BOT_SECRET: secret echoed by Telegram in X-Telegram-Bot-Api-Secret-Token
- ADMIN_UID: chat id of the operator

Optional:
- WEBHOOK_PATH (default: /endpoint)
- FRAUD_DB_URL, START_MESSAGE_URL
- NOTIFY_INTERVAL_SECONDS (default: 3600)
- FRAUD_CACHE_TTL_SECONDS (default: 3600)
- CORRELATION_TTL_DAYS (default: 30, 0 disables expiry)
- STORE_BACKEND: "memory" (default) or "postgres"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal

DEFAULT_WEBHOOK_PATH = "/endpoint"
DEFAULT_FRAUD_DB_URL = (
    "https://raw.githubusercontent.com/laningya/nfd/refs/heads/main/data/fraud.db"
)
DEFAULT_START_MESSAGE_URL = (
    "https://raw.githubusercontent.com/laningya/nfd/refs/heads/main/data/startMessage.md"
)
DEFAULT_NOTIFY_INTERVAL_SECONDS = 3600
DEFAULT_FRAUD_CACHE_TTL_SECONDS = 3600
DEFAULT_CORRELATION_TTL_DAYS = 30


@dataclass(frozen=True)
class RelaySettings:
    """Runtime configuration for the relay.

    Attributes:
        bot_token: Telegram Bot API token. NEVER logged.
        bot_secret: Webhook secret token. NEVER logged.
        admin_uid: Operator chat id, compared as a string.
        notify_interval: Minimum gap between routine notifications per guest.
        fraud_cache_ttl: Lifetime of a loaded fraud list.
        correlation_ttl: Retention of reply correlation entries (None = forever).
    """

    bot_token: str
    bot_secret: str
    admin_uid: str
    webhook_path: str = DEFAULT_WEBHOOK_PATH
    fraud_db_url: str = DEFAULT_FRAUD_DB_URL
    start_message_url: str = DEFAULT_START_MESSAGE_URL
    notify_interval: timedelta = timedelta(seconds=DEFAULT_NOTIFY_INTERVAL_SECONDS)
    fraud_cache_ttl: timedelta = timedelta(seconds=DEFAULT_FRAUD_CACHE_TTL_SECONDS)
    correlation_ttl: timedelta | None = timedelta(days=DEFAULT_CORRELATION_TTL_DAYS)
    store_backend: Literal["memory", "postgres"] = "memory"


def _require(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing relay config: {name} required")
    return value


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid relay config: {name} must be an integer") from None


def get_settings() -> RelaySettings:
    """Build RelaySettings from environment variables.

    Raises:
        RuntimeError: If a required variable is missing or a value is invalid.
    """
    backend = os.environ.get("STORE_BACKEND", "memory").strip().lower()
    if backend not in ("memory", "postgres"):
        raise RuntimeError(f"Invalid relay config: unknown STORE_BACKEND {backend!r}")

    webhook_path = os.environ.get("WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH).strip()
    if not webhook_path.startswith("/"):
        webhook_path = "/" + webhook_path

    correlation_days = _int_env("CORRELATION_TTL_DAYS", DEFAULT_CORRELATION_TTL_DAYS)

    return RelaySettings(
        bot_token=_require("BOT_TOKEN"),
        bot_secret=_require("BOT_SECRET"),
        admin_uid=_require("ADMIN_UID"),
        webhook_path=webhook_path,
        fraud_db_url=os.environ.get("FRAUD_DB_URL", DEFAULT_FRAUD_DB_URL),
        start_message_url=os.environ.get("START_MESSAGE_URL", DEFAULT_START_MESSAGE_URL),
        notify_interval=timedelta(
            seconds=_int_env("NOTIFY_INTERVAL_SECONDS", DEFAULT_NOTIFY_INTERVAL_SECONDS)
        ),
        fraud_cache_ttl=timedelta(
            seconds=_int_env("FRAUD_CACHE_TTL_SECONDS", DEFAULT_FRAUD_CACHE_TTL_SECONDS)
        ),
        correlation_ttl=timedelta(days=correlation_days) if correlation_days > 0 else None,
        store_backend=backend,  # type: ignore[arg-type]
    )
