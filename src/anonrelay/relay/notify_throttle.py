"""Per-guest throttle for routine "confirm identity" notifications."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from anonrelay.infra.keys import NOTIFY
from anonrelay.infra.store import KVStore
from anonrelay.infra.time import from_stored, to_stored, utc_now

NOTIFY_INTERVAL = timedelta(hours=1)


class NotificationThrottle:
    def __init__(
        self,
        store: KVStore,
        interval: timedelta = NOTIFY_INTERVAL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._interval = interval
        self._clock = clock

    def last_notified(self, guest: int | str) -> datetime | None:
        return from_stored(self._store.get(NOTIFY.key(guest)))

    def should_notify(self, guest: int | str) -> bool:
        """Claim a notification slot for guest.

        Returns True, after writing the current time, when the guest was never
        notified or the interval has elapsed. Returns False without writing
        otherwise.
        """
        now = self._clock()
        last = self.last_notified(guest)
        if last is not None and now - last <= self._interval:
            return False
        self._store.put(NOTIFY.key(guest), to_stored(now))
        return True
