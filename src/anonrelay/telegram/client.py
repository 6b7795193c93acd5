"""Outbound Telegram messaging via the Bot API.

Security: NEVER log chat ids or text. Only log hashes and lengths.

Each call is a single attempt; failures come back as a DeliveryResult with
ok=False instead of being retried.
"""

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol

from anonrelay.observability.correlation import get_correlation_id
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import hash_identifier, safe_log_context

from .models import DeliveryResult

logger = get_logger(__name__)

# Timeout for HTTP requests (seconds)
HTTP_TIMEOUT = 5

API_BASE_URL = "https://api.telegram.org"


class Messenger(Protocol):
    """Outbound delivery capability used by the relay core."""

    def send_text(
        self,
        chat_id: int | str,
        text: str,
        parse_mode: str | None = None,
    ) -> DeliveryResult: ...

    def forward_message(
        self,
        chat_id: int | str,
        from_chat_id: int | str,
        message_id: int,
    ) -> DeliveryResult: ...

    def copy_message(
        self,
        chat_id: int | str,
        from_chat_id: int | str,
        message_id: int,
    ) -> DeliveryResult: ...


def _do_request(url: str, data: bytes, headers: dict[str, str]) -> dict[str, Any]:
    """Execute HTTP POST request. Raises on error."""
    req = urllib.request.Request(url, data=data, headers=headers, method="POST")
    with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
        return json.loads(resp.read().decode())


def _error_description(exc: urllib.error.HTTPError) -> str:
    """Pull the Bot API description out of an HTTP error body."""
    try:
        body = json.loads(exc.read().decode())
    except (ValueError, OSError):
        return f"HTTPError {exc.code}"
    return str(body.get("description") or f"HTTPError {exc.code}")


class TelegramClient:
    """Bot API client implementing the Messenger protocol."""

    def __init__(self, bot_token: str, base_url: str = API_BASE_URL) -> None:
        if not bot_token:
            raise RuntimeError("Missing Telegram config: BOT_TOKEN required")
        self._token = bot_token
        self._base_url = base_url.rstrip("/")

    def api_url(self, method: str, params: dict[str, Any] | None = None) -> str:
        """Build a Bot API method URL. Contains the token: NEVER log it."""
        url = f"{self._base_url}/bot{self._token}/{method}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def call(self, method: str, payload: dict[str, Any], *, target: Any = None) -> DeliveryResult:
        """Invoke a Bot API method with a JSON body.

        Args:
            method: Bot API method name (e.g. "sendMessage").
            payload: JSON body. NEVER logged.
            target: Recipient chat id, logged only as a hash.
        """
        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}

        log_ctx = safe_log_context(
            correlationId=get_correlation_id(),
            method=method,
            to_hash=hash_identifier(target) if target is not None else "",
        )

        try:
            body = _do_request(self.api_url(method), data, headers)
        except urllib.error.HTTPError as e:
            description = _error_description(e)
            logger.error(
                "telegram call rejected",
                extra={"extra_fields": safe_log_context(**log_ctx, status=e.code)},
            )
            return DeliveryResult(ok=False, description=description)
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            logger.error(
                "telegram call failed",
                extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
            )
            return DeliveryResult(ok=False, description=type(e).__name__)

        if not body.get("ok"):
            logger.error("telegram call not ok", extra={"extra_fields": log_ctx})
            return DeliveryResult(ok=False, description=body.get("description"))

        result = body.get("result")
        message_id = result.get("message_id") if isinstance(result, dict) else None
        logger.info("telegram call succeeded", extra={"extra_fields": log_ctx})
        return DeliveryResult(ok=True, message_id=message_id)

    def send_text(
        self,
        chat_id: int | str,
        text: str,
        parse_mode: str | None = None,
    ) -> DeliveryResult:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return self.call("sendMessage", payload, target=chat_id)

    def forward_message(
        self,
        chat_id: int | str,
        from_chat_id: int | str,
        message_id: int,
    ) -> DeliveryResult:
        """Forward keeping the original author attribution."""
        payload = {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id}
        return self.call("forwardMessage", payload, target=chat_id)

    def copy_message(
        self,
        chat_id: int | str,
        from_chat_id: int | str,
        message_id: int,
    ) -> DeliveryResult:
        """Copy content without attribution."""
        payload = {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id}
        return self.call("copyMessage", payload, target=chat_id)

    def set_webhook(self, url: str, secret_token: str) -> str:
        """Register the webhook and return the raw Bot API response text.

        Raises:
            urllib.error.URLError: On network errors (HTTP errors are returned
                as their response body).
        """
        params = {
            "url": url,
            "secret_token": secret_token,
            "allowed_updates": json.dumps(["message"]),
        }
        req = urllib.request.Request(self.api_url("setWebhook", params), method="GET")
        try:
            with urllib.request.urlopen(req, timeout=HTTP_TIMEOUT) as resp:
                return resp.read().decode()
        except urllib.error.HTTPError as e:
            logger.warning(
                "webhook registration rejected",
                extra={"extra_fields": safe_log_context(status=e.code)},
            )
            return e.read().decode()
