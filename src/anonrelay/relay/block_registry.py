"""Per-guest block state.

A guest is blocked exactly when a block entry exists whose metadata carries
is_blocked=true. Unblocking deletes the entry; nothing ever stores "false".
"""

from __future__ import annotations

from anonrelay.infra.keys import BLOCK
from anonrelay.infra.store import KVStore

_SENTINEL = "true"
_FLAG = "is_blocked"


class BlockRegistry:
    def __init__(self, store: KVStore) -> None:
        self._store = store

    def set_blocked(self, guest: int | str) -> None:
        """Block guest. Idempotent."""
        self._store.put(BLOCK.key(guest), _SENTINEL, metadata={_FLAG: True})

    def clear_blocked(self, guest: int | str) -> None:
        """Unblock guest. Idempotent."""
        self._store.delete(BLOCK.key(guest))

    def is_blocked(self, guest: int | str) -> bool:
        """Absent entry, or entry without the flag, means not blocked."""
        entry = self._store.get_with_metadata(BLOCK.key(guest))
        if entry is None:
            return False
        return entry.metadata.get(_FLAG) is True
