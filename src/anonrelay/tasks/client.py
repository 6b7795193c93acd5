"""Tasks client with idempotent inline execution.

Telegram redelivers an update when a webhook call fails or times out. Each
update is executed at most once per process, keyed by its update_id.
"""

import threading
from collections import OrderedDict
from typing import Callable, Protocol

from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Bound on remembered task ids; the oldest are forgotten first
MAX_REMEMBERED_IDS = 10_000


class TaskHandler(Protocol):
    """Protocol for task handlers."""

    def __call__(self, payload: dict) -> None:
        """Execute task with given payload."""
        ...


class TasksClient:
    """Tasks client with idempotent enqueue by task_id.

    Executes handlers inline. Tracks task_ids to ensure idempotency (same
    task_id = no-op) within a bounded window.
    """

    def __init__(self, max_remembered: int = MAX_REMEMBERED_IDS) -> None:
        self._lock = threading.Lock()
        self._executed_ids: OrderedDict[str, None] = OrderedDict()
        self._max_remembered = max_remembered

    def enqueue(
        self,
        task_id: str,
        handler: Callable[[dict], None],
        payload: dict,
    ) -> bool:
        """Execute handler once for task_id.

        Handler exceptions propagate to the caller; the task_id stays marked
        so a redelivery is not executed again.

        Returns:
            True if the handler ran (new task_id).
            False if no-op (task_id already seen).
        """
        with self._lock:
            duplicate = task_id in self._executed_ids
            if not duplicate:
                self._executed_ids[task_id] = None
                while len(self._executed_ids) > self._max_remembered:
                    self._executed_ids.popitem(last=False)

        if duplicate:
            logger.info(
                "duplicate task ignored",
                extra={"extra_fields": safe_log_context(task_id=task_id)},
            )
            return False

        handler(payload)
        return True

    def was_executed(self, task_id: str) -> bool:
        """Check if task_id was already executed."""
        with self._lock:
            return task_id in self._executed_ids

    def clear(self) -> None:
        """Forget all task_ids (useful for testing)."""
        with self._lock:
            self._executed_ids.clear()
