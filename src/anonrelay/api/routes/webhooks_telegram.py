"""Telegram webhook routes.

Security:
- Requests must carry the configured secret in X-Telegram-Bot-Api-Secret-Token
- Guest chat ids, names and text exist only in memory during processing
- Logs contain NO guest identifiers in clear

After the secret check the webhook always answers 200, even on errors.
Telegram redelivers on non-2xx responses, which would relay the same
message twice.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, Header, Request, Response

from anonrelay.infra.settings import RelaySettings, get_settings
from anonrelay.infra.store import KVStore, create_store
from anonrelay.observability.correlation import (
    correlation_id_for_update,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context
from anonrelay.relay.core import RelayCore
from anonrelay.tasks.client import TasksClient
from anonrelay.telegram.adapter import (
    InvalidPayloadError,
    SecretVerificationError,
    normalize,
    verify_secret,
)
from anonrelay.telegram.client import TelegramClient
from anonrelay.telegram.models import InboundMessage

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

# Process-wide singletons, built on first use (tests inject replacements)
_tasks_client = TasksClient()
_settings: RelaySettings | None = None
_store: KVStore | None = None
_relay: RelayCore | None = None


def _get_settings() -> RelaySettings:
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def _get_tasks_client() -> TasksClient:
    """Get tasks client instance (allows test injection)."""
    return _tasks_client


def _get_telegram_client() -> TelegramClient:
    return TelegramClient(_get_settings().bot_token)


def _get_relay() -> RelayCore:
    """Get the relay core (allows test injection)."""
    global _store, _relay
    if _relay is None:
        settings = _get_settings()
        if _store is None:
            _store = create_store(settings.store_backend)
        _relay = RelayCore.from_settings(settings, _store, _get_telegram_client())
    return _relay


def _task_id(message: InboundMessage) -> str:
    if message.update_id is not None:
        return f"telegram:update:{message.update_id}"
    return f"telegram:message:{message.chat_id}:{message.message_id}"


def _handle_update(payload: dict) -> None:
    """Task handler: run one message through the relay core."""
    message: InboundMessage = payload["message"]
    _get_relay().process(message)


def _run_update(message: InboundMessage) -> bool:
    return _get_tasks_client().enqueue(_task_id(message), _handle_update, {"message": message})


async def telegram_webhook(
    request: Request,
    x_secret_token: str | None = Header(None, alias=SECRET_HEADER),
) -> Response:
    """Receive a Telegram update.

    Returns:
        403 if the secret token is missing or wrong.
        200 otherwise, whatever happened while processing.
    """
    settings = _get_settings()

    try:
        verify_secret(x_secret_token, settings.bot_secret)
    except SecretVerificationError as e:
        logger.warning(
            "telegram secret verification failed",
            extra={"extra_fields": safe_log_context(error=str(e))},
        )
        return Response(status_code=403, content="Unauthorized")

    try:
        update: dict[str, Any] = await request.json()
    except ValueError:
        logger.warning("invalid json body")
        return Response(status_code=200, content="Ok")

    try:
        message = normalize(update)
    except InvalidPayloadError as e:
        # Edited messages, channel posts and the like
        logger.debug(
            "non-message update ignored",
            extra={"extra_fields": safe_log_context(reason=str(e))},
        )
        return Response(status_code=200, content="Ok")

    token = set_correlation_id(correlation_id_for_update(message.update_id))
    try:
        logger.info(
            "telegram update received",
            extra={
                "extra_fields": safe_log_context(
                    update_id=message.update_id,
                    is_reply=message.is_reply,
                    text_len=len(message.text or ""),
                )
            },
        )
        ran = await asyncio.to_thread(_run_update, message)
        if not ran:
            return Response(status_code=200, content="duplicate")
    except Exception:
        logger.exception(
            "telegram update processing failed",
            extra={"extra_fields": safe_log_context(correlationId=get_correlation_id())},
        )
    finally:
        reset_correlation_id(token)

    return Response(status_code=200, content="Ok")


async def register_webhook(request: Request) -> Response:
    """Point Telegram at this deployment's webhook path."""
    settings = _get_settings()
    webhook_url = f"{request.url.scheme}://{request.url.hostname}{settings.webhook_path}"

    body = await asyncio.to_thread(
        _get_telegram_client().set_webhook, webhook_url, settings.bot_secret
    )
    logger.info("webhook registration requested")
    return Response(status_code=200, content=body)


def build_router(webhook_path: str) -> APIRouter:
    """Build the webhook router for the configured path."""
    router = APIRouter(tags=["webhooks"])
    router.add_api_route(webhook_path, telegram_webhook, methods=["POST"])
    router.add_api_route("/registerWebhook", register_webhook, methods=["GET"])
    return router
