"""Welcome text sent in answer to /start."""

import requests

from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import safe_log_context

from .templates import render

logger = get_logger(__name__)

FETCH_TIMEOUT = 10


def fetch_welcome_text(url: str) -> str:
    """Fetch the welcome text, falling back to a built-in line on any error."""
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning(
            "welcome text fetch failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        return render("start_fallback", {})

    text = resp.text.strip()
    return text or render("start_fallback", {})
