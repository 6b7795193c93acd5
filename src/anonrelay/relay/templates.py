"""Relay message templates.

Templates marked markdown=True are sent with parse_mode=MarkdownV2: their
static text must contain no unescaped reserved characters and their params
must already be escaped (GuestCard values are).
"""

from typing import Any

MARKDOWN_V2 = "MarkdownV2"

_CARD = "🆔 ID: `{guest_id}`\n👤 Username: {username}\n📛 Name: {display_name}"
_CARD_PARAMS = ["guest_id", "username", "display_name"]

TEMPLATES: dict[str, dict[str, Any]] = {
    "admin_help": {
        "text": (
            "Reply to a relayed message with one of these commands:\n"
            "/block - block the guest\n"
            "/unblock - unblock the guest\n"
            "/checkblock - show block status\n"
            "/info - show guest details\n"
            "Any other reply is delivered to the guest."
        ),
        "allowed_params": [],
        "markdown": False,
    },
    "guest_restricted": {
        "text": "⚠️ You have been restricted from using this service.",
        "allowed_params": [],
        "markdown": False,
    },
    "start_fallback": {
        "text": "👋 Send a message here and it will be delivered anonymously.",
        "allowed_params": [],
        "markdown": False,
    },
    "blocked_ok": {
        "text": "✅ Guest blocked\n" + _CARD,
        "allowed_params": _CARD_PARAMS,
        "markdown": True,
    },
    "unblocked_ok": {
        "text": "✅ Guest unblocked\n" + _CARD,
        "allowed_params": _CARD_PARAMS,
        "markdown": True,
    },
    "block_status": {
        "text": "ℹ️ Guest status: {status}\n" + _CARD,
        "allowed_params": ["status", *_CARD_PARAMS],
        "markdown": True,
    },
    "guest_info": {
        "text": "📋 Guest profile\n" + _CARD,
        "allowed_params": _CARD_PARAMS,
        "markdown": True,
    },
    "confirm_identity": {
        "text": "🔔 Please confirm who you are talking to\n" + _CARD,
        "allowed_params": _CARD_PARAMS,
        "markdown": True,
    },
    "fraud_alert": {
        "text": "🚨 High risk guest alert\n" + _CARD + "\n⚠️ This guest is listed in the fraud database",
        "allowed_params": _CARD_PARAMS,
        "markdown": True,
    },
    "operation_failed": {
        "text": "❌ {operation} failed: {error}",
        "allowed_params": ["operation", "error"],
        "markdown": False,
    },
    "notify_failed": {
        "text": "⚠️ Notification error: {error}",
        "allowed_params": ["error"],
        "markdown": False,
    },
}


def render(template_key: str, params: dict[str, Any]) -> str:
    """Render template with params.

    Raises:
        ValueError: If template_key is unknown or params contains disallowed keys.
    """
    if template_key not in TEMPLATES:
        raise ValueError(f"Unknown template: {template_key}")

    template = TEMPLATES[template_key]
    extras = set(params) - set(template["allowed_params"])
    if extras:
        raise ValueError(f"Disallowed params for {template_key}: {extras}")

    return template["text"].format(**params)


def parse_mode_for(template_key: str) -> str | None:
    """Return the parse_mode the template must be sent with."""
    return MARKDOWN_V2 if TEMPLATES[template_key]["markdown"] else None
