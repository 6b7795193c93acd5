"""Guest display metadata (username, first name).

Profiles are overwritten on every inbound guest message and read back only
to format admin-facing cards, so reads never fail: any problem turns into
placeholder values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from anonrelay.errors import StoreUnavailable
from anonrelay.infra.keys import IDENTITY
from anonrelay.infra.store import KVStore
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import hash_identifier, safe_log_context
from anonrelay.telegram.markdown import escape_markdown

logger = get_logger(__name__)

RETRIEVAL_FAILED = "retrieval failed"
NO_USERNAME = "none"
NO_DISPLAY_NAME = "not set"


@dataclass(frozen=True)
class IdentityProfile:
    """Raw display metadata as reported by Telegram."""

    username: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class GuestCard:
    """Display values ready for a MarkdownV2 message."""

    guest_id: str
    username: str
    display_name: str


class IdentityStore:
    def __init__(self, store: KVStore) -> None:
        self._store = store

    def put(self, guest: int | str, profile: IdentityProfile) -> None:
        """Overwrite the stored profile. No merge with previous values."""
        value = json.dumps({"username": profile.username, "first_name": profile.display_name})
        self._store.put(IDENTITY.key(guest), value)

    def get(self, guest: int | str) -> GuestCard:
        """Return a formatted card for the guest, never raising."""
        try:
            raw = self._store.get(IDENTITY.key(guest))
            data = json.loads(raw) if raw else {}
            if not isinstance(data, dict):
                raise ValueError("profile is not an object")
        except (StoreUnavailable, ValueError) as e:
            logger.warning(
                "identity read failed",
                extra={
                    "extra_fields": safe_log_context(
                        guest_hash=hash_identifier(guest),
                        error_type=type(e).__name__,
                    )
                },
            )
            return GuestCard(
                guest_id=str(guest),
                username=RETRIEVAL_FAILED,
                display_name=RETRIEVAL_FAILED,
            )

        username = data.get("username")
        first_name = data.get("first_name")
        return GuestCard(
            guest_id=str(guest),
            username=f"@{escape_markdown(str(username))}" if username else NO_USERNAME,
            display_name=escape_markdown(str(first_name)) if first_name else NO_DISPLAY_NAME,
        )
