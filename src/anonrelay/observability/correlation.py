"""Correlation ID management for tracing one webhook delivery end to end."""

import uuid
from contextvars import ContextVar, Token

# Context variable for correlation ID - accessible across async calls and the
# threadpool that runs sync handlers
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def correlation_id_for_update(update_id: int | str | None) -> str:
    """Build a stable correlation ID from a Telegram update_id.

    Telegram redelivers the same update_id when a webhook call fails, so the
    derived ID lets log lines from both attempts be grouped together.
    """
    if update_id is None:
        return generate_correlation_id()
    return f"tg-update-{update_id}"


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID in context."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    """Reset correlation ID to previous value."""
    correlation_id_var.reset(token)
