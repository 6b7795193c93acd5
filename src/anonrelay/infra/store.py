"""Key-value store with per-entry metadata.

Two backends, selected via STORE_BACKEND:
- memory (default): process-local dict, for dev and tests
- postgres: kv_entries table through psycopg2 (see migrations/)

Both raise StoreUnavailable on backend failures and treat expired entries
as absent.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Protocol

import psycopg2

from anonrelay.errors import StoreUnavailable
from anonrelay.infra.db import fetchone, txn
from anonrelay.infra.time import utc_now
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreEntry:
    """A stored value plus its side metadata."""

    value: str
    metadata: dict[str, Any] = field(default_factory=dict)


class KVStore(Protocol):
    """Protocol for the durable key-value store."""

    def get(self, key: str) -> str | None:
        """Return the value for key, or None if absent."""
        ...

    def get_with_metadata(self, key: str) -> StoreEntry | None:
        """Return value and metadata for key, or None if absent."""
        ...

    def put(
        self,
        key: str,
        value: str,
        metadata: dict[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        """Write key unconditionally (last write wins)."""
        ...

    def delete(self, key: str) -> None:
        """Delete key. Deleting an absent key is not an error."""
        ...


class MemoryKVStore:
    """In-memory store. Entries are expired lazily on read."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[StoreEntry, datetime | None]] = {}

    def _live(self, key: str) -> StoreEntry | None:
        item = self._entries.get(key)
        if item is None:
            return None
        entry, expires_at = item
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
        return entry.value if entry else None

    def get_with_metadata(self, key: str) -> StoreEntry | None:
        with self._lock:
            return self._live(key)

    def put(
        self,
        key: str,
        value: str,
        metadata: dict[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        entry = StoreEntry(value=value, metadata=dict(metadata or {}))
        with self._lock:
            self._entries[key] = (entry, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None


_GET_SQL = """
SELECT value, metadata FROM kv_entries
WHERE key = %s AND (expires_at IS NULL OR expires_at > now())
"""

_PUT_SQL = """
INSERT INTO kv_entries (key, value, metadata, expires_at, updated_at)
VALUES (%s, %s, %s::jsonb, %s, now())
ON CONFLICT (key) DO UPDATE
SET value = EXCLUDED.value,
    metadata = EXCLUDED.metadata,
    expires_at = EXCLUDED.expires_at,
    updated_at = now()
"""

_DELETE_SQL = "DELETE FROM kv_entries WHERE key = %s"

_CLEANUP_SQL = "DELETE FROM kv_entries WHERE expires_at IS NOT NULL AND expires_at <= now()"


class PostgresKVStore:
    """Store backed by the kv_entries table.

    Every call runs in its own short transaction; there are no cross-key
    transactions.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def _fetch(self, key: str) -> tuple[Any, ...] | None:
        try:
            with txn() as cur:
                return fetchone(cur, _GET_SQL, (key,))
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "kv read failed",
                extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
            )
            raise StoreUnavailable(f"read failed: {type(e).__name__}") from e

    def get(self, key: str) -> str | None:
        row = self._fetch(key)
        return row[0] if row else None

    def get_with_metadata(self, key: str) -> StoreEntry | None:
        row = self._fetch(key)
        if row is None:
            return None
        metadata = row[1]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return StoreEntry(value=row[0], metadata=metadata or {})

    def put(
        self,
        key: str,
        value: str,
        metadata: dict[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        try:
            with txn() as cur:
                cur.execute(_PUT_SQL, (key, value, json.dumps(metadata or {}), expires_at))
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "kv write failed",
                extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
            )
            raise StoreUnavailable(f"write failed: {type(e).__name__}") from e

    def delete(self, key: str) -> None:
        try:
            with txn() as cur:
                cur.execute(_DELETE_SQL, (key,))
        except (psycopg2.Error, RuntimeError) as e:
            logger.error(
                "kv delete failed",
                extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
            )
            raise StoreUnavailable(f"delete failed: {type(e).__name__}") from e

    def cleanup_expired(self) -> int:
        """Delete expired entries. Returns number of rows deleted."""
        with txn() as cur:
            cur.execute(_CLEANUP_SQL)
            return cur.rowcount


def create_store(backend: str) -> KVStore:
    """Create a store for the given STORE_BACKEND value.

    Raises:
        ValueError: If backend is unknown.
    """
    if backend == "memory":
        return MemoryKVStore()
    if backend == "postgres":
        return PostgresKVStore()
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")
