"""Process-wide cache of the external fraud list.

The list is a text file of identities, one per line. It is fetched on the
first check, served from memory until it expires, then fetched again on the
next check. A rebuild publishes a fully built frozenset in one assignment so
readers never observe a partial set. Concurrent rebuilds may both fetch; the
last one wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

import requests

from anonrelay.errors import FraudListUnavailable
from anonrelay.infra.time import utc_now
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context

logger = get_logger(__name__)

FRAUD_CACHE_TTL = timedelta(hours=1)
FETCH_TIMEOUT = 10


@dataclass(frozen=True)
class FraudSnapshot:
    data: frozenset[str]
    expires_at: datetime


def parse_fraud_list(text: str) -> frozenset[str]:
    """Parse newline-delimited identities, dropping blank lines."""
    return frozenset(line.strip() for line in text.splitlines() if line.strip())


def fetch_fraud_list(url: str) -> str:
    """Fetch the raw fraud list.

    Raises:
        FraudListUnavailable: On network or HTTP errors.
    """
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(
            "fraud list fetch failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        raise FraudListUnavailable(f"fraud list fetch failed: {type(e).__name__}") from e
    return resp.text


class FraudListCache:
    def __init__(
        self,
        url: str,
        ttl: timedelta = FRAUD_CACHE_TTL,
        clock: Callable[[], datetime] = utc_now,
        fetcher: Callable[[str], str] = fetch_fraud_list,
    ) -> None:
        self._url = url
        self._ttl = ttl
        self._clock = clock
        self._fetcher = fetcher
        self._snapshot: FraudSnapshot | None = None

    def _current(self) -> FraudSnapshot:
        snapshot = self._snapshot
        now = self._clock()
        if snapshot is not None and now < snapshot.expires_at:
            return snapshot

        data = parse_fraud_list(self._fetcher(self._url))
        snapshot = FraudSnapshot(data=data, expires_at=now + self._ttl)
        self._snapshot = snapshot
        logger.info(
            "fraud list loaded",
            extra={"extra_fields": safe_log_context(entries=len(data))},
        )
        return snapshot

    def is_fraud(self, guest: int | str) -> bool:
        """Return True if guest is on the fraud list.

        Raises:
            FraudListUnavailable: If the list had to be fetched and could not be.
        """
        return str(guest) in self._current().data
