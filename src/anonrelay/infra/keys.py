"""Namespaced keys for the flat key-value store.

Every entity type owns one prefix. Call sites build keys through these
helpers only, so the store layout can change without touching them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeySpace:
    """A key prefix for one entity type."""

    prefix: str

    def key(self, entity_id: int | str) -> str:
        return f"{self.prefix}{entity_id}"


IDENTITY = KeySpace("userinfo-")
BLOCK = KeySpace("isblocked-")
CORRELATION = KeySpace("msg-map-")
NOTIFY = KeySpace("lastmsg-")
