"""Telegram Bot API adapter - validate and normalize webhook updates.

Handles webhook secret verification and message normalization.
"""

import hmac
from typing import Any

from .models import InboundMessage


class InvalidPayloadError(Exception):
    """Raised when an update carries no usable message."""

    pass


class SecretVerificationError(Exception):
    """Raised when the webhook secret token does not match."""

    pass


def verify_secret(header_value: str | None, expected: str) -> None:
    """Verify the X-Telegram-Bot-Api-Secret-Token header.

    Raises:
        SecretVerificationError: If the header is missing or does not match.
    """
    if not header_value:
        raise SecretVerificationError("missing secret token header")

    if not hmac.compare_digest(header_value.encode(), expected.encode()):
        raise SecretVerificationError("secret token mismatch")


def normalize(update: dict[str, Any]) -> InboundMessage:
    """Normalize a Telegram update into an InboundMessage.

    Update structure (only the fields used here):
    {
      "update_id": 10000,
      "message": {
        "message_id": 42,
        "chat": {"id": 1111, "username": "guest", "first_name": "Guest"},
        "text": "hello",
        "reply_to_message": {"message_id": 41}
      }
    }

    Sender metadata is taken from `chat`; for private chats it mirrors the
    sender, falling back to `from` when the chat carries no names.

    Raises:
        InvalidPayloadError: If the update has no message or the message has
            no usable ids.
    """
    if not isinstance(update, dict):
        raise InvalidPayloadError("update is not an object")

    message = update.get("message")
    if not isinstance(message, dict):
        raise InvalidPayloadError("no message found in update")

    message_id = message.get("message_id")
    if not isinstance(message_id, int) or isinstance(message_id, bool):
        raise InvalidPayloadError("missing or invalid message_id")

    chat = message.get("chat")
    if not isinstance(chat, dict):
        raise InvalidPayloadError("missing chat")

    chat_id = chat.get("id")
    if not isinstance(chat_id, int) or isinstance(chat_id, bool):
        raise InvalidPayloadError("missing or invalid chat id")

    sender = message.get("from") if isinstance(message.get("from"), dict) else {}
    username = chat.get("username") or sender.get("username")
    first_name = chat.get("first_name") or sender.get("first_name")

    reply_to_message_id = None
    reply = message.get("reply_to_message")
    if isinstance(reply, dict) and isinstance(reply.get("message_id"), int):
        reply_to_message_id = reply["message_id"]

    text = message.get("text")
    if not isinstance(text, str):
        text = None

    update_id = update.get("update_id")

    return InboundMessage(
        update_id=update_id if isinstance(update_id, int) else None,
        message_id=message_id,
        chat_id=chat_id,
        username=username,
        first_name=first_name,
        text=text,
        reply_to_message_id=reply_to_message_id,
    )
