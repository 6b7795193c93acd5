"""Shared test helpers for relay tests.

These are NOT fixtures - they are regular classes and functions importable
by conftest.py and individual test files.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from anonrelay.errors import StoreUnavailable
from anonrelay.infra.store import MemoryKVStore, StoreEntry
from anonrelay.infra.time import utc_now
from anonrelay.telegram.models import DeliveryResult, InboundMessage

ADMIN_UID = 999000
GUEST_ID = 111222

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeMessenger:
    """Messenger that records every call and assigns increasing message ids."""

    def __init__(self, first_message_id: int = 5000) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_methods: set[str] = set()
        self._next_id = first_message_id

    def _result(self, method: str) -> DeliveryResult:
        if method in self.fail_methods:
            return DeliveryResult(ok=False, description="Bad Request: chat not found")
        self._next_id += 1
        return DeliveryResult(ok=True, message_id=self._next_id)

    def send_text(self, chat_id, text, parse_mode=None) -> DeliveryResult:
        self.calls.append(("send_text", {"chat_id": chat_id, "text": text, "parse_mode": parse_mode}))
        return self._result("send_text")

    def forward_message(self, chat_id, from_chat_id, message_id) -> DeliveryResult:
        self.calls.append(
            ("forward_message", {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id})
        )
        return self._result("forward_message")

    def copy_message(self, chat_id, from_chat_id, message_id) -> DeliveryResult:
        self.calls.append(
            ("copy_message", {"chat_id": chat_id, "from_chat_id": from_chat_id, "message_id": message_id})
        )
        return self._result("copy_message")

    @property
    def last_forward_id(self) -> int:
        return self._next_id

    def sent_texts(self, chat_id: int | str | None = None) -> list[str]:
        return [
            kwargs["text"]
            for method, kwargs in self.calls
            if method == "send_text" and (chat_id is None or str(kwargs["chat_id"]) == str(chat_id))
        ]

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


class RecordingStore(MemoryKVStore):
    """MemoryKVStore that counts writes and can be switched to failing."""

    def __init__(self, clock=None) -> None:
        super().__init__(clock or utc_now)
        self.writes: list[tuple[str, str]] = []
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise StoreUnavailable("read failed: OperationalError")
        return super().get(key)

    def get_with_metadata(self, key: str) -> StoreEntry | None:
        if self.fail_reads:
            raise StoreUnavailable("read failed: OperationalError")
        return super().get_with_metadata(key)

    def put(self, key, value, metadata=None, ttl=None) -> None:
        if self.fail_writes:
            raise StoreUnavailable("write failed: OperationalError")
        self.writes.append(("put", key))
        super().put(key, value, metadata=metadata, ttl=ttl)

    def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StoreUnavailable("delete failed: OperationalError")
        self.writes.append(("delete", key))
        super().delete(key)


def make_message(
    *,
    chat_id: int = GUEST_ID,
    message_id: int = 10,
    text: str | None = "hello",
    username: str | None = "guest_user",
    first_name: str | None = "Guest",
    reply_to_message_id: int | None = None,
    update_id: int | None = 1,
) -> InboundMessage:
    return InboundMessage(
        update_id=update_id,
        message_id=message_id,
        chat_id=chat_id,
        username=username,
        first_name=first_name,
        text=text,
        reply_to_message_id=reply_to_message_id,
    )


def make_update(
    *,
    update_id: int = 1,
    chat_id: int = GUEST_ID,
    message_id: int = 10,
    text: str | None = "hello",
    reply_to_message_id: int | None = None,
) -> dict[str, Any]:
    message: dict[str, Any] = {
        "message_id": message_id,
        "date": 1760000000,
        "chat": {"id": chat_id, "type": "private", "username": "guest_user", "first_name": "Guest"},
        "from": {"id": chat_id, "is_bot": False, "username": "guest_user", "first_name": "Guest"},
    }
    if text is not None:
        message["text"] = text
    if reply_to_message_id is not None:
        message["reply_to_message"] = {"message_id": reply_to_message_id}
    return {"update_id": update_id, "message": message}


class LogRecorder:
    """Simple recorder to capture log calls deterministically."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, level: str, *args, **kwargs) -> None:
        self.calls.append((level, args, kwargs))

    def info(self, *args, **kwargs):
        self._record("info", *args, **kwargs)

    def warning(self, *args, **kwargs):
        self._record("warning", *args, **kwargs)

    def error(self, *args, **kwargs):
        self._record("error", *args, **kwargs)

    def exception(self, *args, **kwargs):
        self._record("exception", *args, **kwargs)

    def debug(self, *args, **kwargs):
        self._record("debug", *args, **kwargs)

    def get_all_logged_content(self) -> str:
        """Concatenate all args and kwargs from all calls into one string."""
        parts = []
        for _, args, kwargs in self.calls:
            parts.append(str(args))
            parts.append(str(kwargs))
        return " ".join(parts)

    def messages(self) -> list[str]:
        return [args[0] for _, args, _ in self.calls if args]

    def has_extra_field(self, key: str) -> bool:
        """Check if any call has the given key in extra_fields."""
        for _, _, kwargs in self.calls:
            extra = kwargs.get("extra", {})
            if key in extra.get("extra_fields", {}):
                return True
        return False
