#!/usr/bin/env python3
"""Delete expired kv_entries rows (reply correlations past retention).

Expired rows are already invisible to reads; this only reclaims space.
Run periodically (e.g. daily cron) against the Postgres store.

Usage:
    DATABASE_URL=... python scripts/cleanup_expired.py
"""

import sys

from anonrelay.infra.store import PostgresKVStore
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context

logger = get_logger("anonrelay.scripts.cleanup_expired")


def main() -> int:
    deleted = PostgresKVStore().cleanup_expired()
    logger.info(
        "expired kv entries deleted",
        extra={"extra_fields": safe_log_context(deleted=deleted)},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
