"""Telegram message models."""

from dataclasses import dataclass
from typing import Literal

SenderRole = Literal["admin", "guest"]


@dataclass(frozen=True)
class InboundMessage:
    """Normalized inbound message.

    ATTENTION: `chat_id`, `username`, `first_name` and `text` identify a
    guest. Keep them in memory only, never log them in clear.
    """

    update_id: int | None
    message_id: int
    chat_id: int
    username: str | None
    first_name: str | None
    text: str | None
    reply_to_message_id: int | None = None

    @property
    def is_reply(self) -> bool:
        return self.reply_to_message_id is not None


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one outbound Bot API call.

    On success `message_id` is the id of the message created in the target
    chat (None for plain sends whose id the caller does not need).
    """

    ok: bool
    message_id: int | None = None
    description: str | None = None
