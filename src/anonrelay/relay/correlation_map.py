"""Reply correlation: relayed message id -> originating guest.

When a guest message is forwarded into the admin chat, Telegram assigns the
forwarded copy a new message id. The admin replies to that copy, so that id
is the key used to route the reply back.
"""

from __future__ import annotations

from datetime import timedelta

from anonrelay.errors import CorrelationNotFound
from anonrelay.infra.keys import CORRELATION
from anonrelay.infra.store import KVStore


class CorrelationMap:
    def __init__(self, store: KVStore, ttl: timedelta | None = None) -> None:
        self._store = store
        self._ttl = ttl

    def record(self, relayed_message_id: int, guest: int | str) -> None:
        """Map relayed_message_id to guest. Last write wins on reuse."""
        self._store.put(CORRELATION.key(relayed_message_id), str(guest), ttl=self._ttl)

    def resolve(self, relayed_message_id: int) -> str:
        """Return the guest id recorded for relayed_message_id.

        Raises:
            CorrelationNotFound: If nothing was recorded or it has expired.
        """
        guest = self._store.get(CORRELATION.key(relayed_message_id))
        if not guest:
            raise CorrelationNotFound(relayed_message_id)
        return guest
