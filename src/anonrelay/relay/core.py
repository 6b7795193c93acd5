"""Relay core - routes one inbound message.

Guest messages are forwarded into the admin chat and the forwarded copy's id
is remembered, so admin replies can be routed back without the admin ever
handling guest chat ids. Admin replies are either moderation commands or
free text that is copied to the guest.

Every failure is contained here: the admin gets a notice where it is useful
and the unit of work ends. Nothing is retried.
"""

from __future__ import annotations

from typing import Callable

from anonrelay.errors import (
    CorrelationNotFound,
    DeliveryFailed,
    FraudListUnavailable,
    StoreUnavailable,
)
from anonrelay.infra.settings import RelaySettings
from anonrelay.infra.store import KVStore
from anonrelay.observability.logging import get_logger
from anonrelay.observability.redaction import hash_identifier, safe_log_context
from anonrelay.telegram.client import Messenger
from anonrelay.telegram.models import DeliveryResult, InboundMessage, SenderRole

from .block_registry import BlockRegistry
from .correlation_map import CorrelationMap
from .fraud_cache import FraudListCache
from .identity_store import GuestCard, IdentityProfile, IdentityStore
from .notify_throttle import NotificationThrottle
from .templates import parse_mode_for, render
from .welcome import fetch_welcome_text

logger = get_logger(__name__)

START_COMMAND = "/start"

# Admin reply commands -> (handler name, operation label for failure notices)
ADMIN_COMMANDS: dict[str, tuple[str, str]] = {
    "/block": ("_block", "Block"),
    "/unblock": ("_unblock", "Unblock"),
    "/checkblock": ("_check_block", "Status check"),
    "/info": ("_info", "Info lookup"),
}


def parse_command(text: str | None) -> str | None:
    """Return the admin command in text, or None for free-form text.

    Only an exact match after trimming and lower-casing counts.
    """
    if text is None:
        return None
    command = text.strip().lower()
    return command if command in ADMIN_COMMANDS else None


def _require_ok(method: str, result: DeliveryResult) -> DeliveryResult:
    if not result.ok:
        raise DeliveryFailed(method, result.description)
    return result


class RelayCore:
    def __init__(
        self,
        *,
        admin_uid: int | str,
        messenger: Messenger,
        identities: IdentityStore,
        blocks: BlockRegistry,
        correlations: CorrelationMap,
        throttle: NotificationThrottle,
        fraud: FraudListCache,
        welcome_text: Callable[[], str] | None = None,
    ) -> None:
        self._admin_uid = str(admin_uid)
        self._messenger = messenger
        self._identities = identities
        self._blocks = blocks
        self._correlations = correlations
        self._throttle = throttle
        self._fraud = fraud
        self._welcome_text = welcome_text

    @classmethod
    def from_settings(
        cls,
        settings: RelaySettings,
        store: KVStore,
        messenger: Messenger,
    ) -> RelayCore:
        """Wire all relay components over a single store."""
        return cls(
            admin_uid=settings.admin_uid,
            messenger=messenger,
            identities=IdentityStore(store),
            blocks=BlockRegistry(store),
            correlations=CorrelationMap(store, ttl=settings.correlation_ttl),
            throttle=NotificationThrottle(store, interval=settings.notify_interval),
            fraud=FraudListCache(settings.fraud_db_url, ttl=settings.fraud_cache_ttl),
            welcome_text=lambda: fetch_welcome_text(settings.start_message_url),
        )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def classify_sender(self, message: InboundMessage) -> SenderRole:
        return "admin" if str(message.chat_id) == self._admin_uid else "guest"

    def process(self, message: InboundMessage) -> None:
        """Handle one inbound message from anyone."""
        if message.text == START_COMMAND and self._welcome_text is not None:
            self._send_plain(message.chat_id, self._welcome_text())
            return
        self.process_inbound_message(message, self.classify_sender(message))

    def process_inbound_message(self, message: InboundMessage, sender_role: SenderRole) -> None:
        if sender_role == "admin":
            self._handle_admin(message)
        else:
            self._handle_guest(message)

    # ------------------------------------------------------------------
    # Admin path
    # ------------------------------------------------------------------

    def _handle_admin(self, message: InboundMessage) -> None:
        if not message.is_reply:
            self._send_template(self._admin_uid, "admin_help")
            return

        command = parse_command(message.text)
        if command is None:
            self._deliver_reply(message)
            return

        handler_name, operation = ADMIN_COMMANDS[command]
        try:
            guest = self._correlations.resolve(message.reply_to_message_id)
            getattr(self, handler_name)(guest)
        except (CorrelationNotFound, StoreUnavailable) as e:
            logger.warning(
                "admin command failed",
                extra={
                    "extra_fields": safe_log_context(
                        command=command,
                        error_type=type(e).__name__,
                    )
                },
            )
            self._send_template(
                self._admin_uid, "operation_failed", operation=operation, error=str(e)
            )

    def _block(self, guest: str) -> None:
        card = self._identities.get(guest)
        self._blocks.set_blocked(guest)
        logger.info(
            "guest blocked",
            extra={"extra_fields": safe_log_context(guest_hash=hash_identifier(guest))},
        )
        self._send_card("blocked_ok", card)

    def _unblock(self, guest: str) -> None:
        card = self._identities.get(guest)
        self._blocks.clear_blocked(guest)
        logger.info(
            "guest unblocked",
            extra={"extra_fields": safe_log_context(guest_hash=hash_identifier(guest))},
        )
        self._send_card("unblocked_ok", card)

    def _check_block(self, guest: str) -> None:
        card = self._identities.get(guest)
        status = "blocked" if self._blocks.is_blocked(guest) else "active"
        self._send_card("block_status", card, status=status)

    def _info(self, guest: str) -> None:
        self._send_card("guest_info", self._identities.get(guest))

    def _deliver_reply(self, message: InboundMessage) -> None:
        """Copy a free-form admin reply to the guest it answers."""
        try:
            guest = self._correlations.resolve(message.reply_to_message_id)
            _require_ok(
                "copyMessage",
                self._messenger.copy_message(guest, self._admin_uid, message.message_id),
            )
        except (CorrelationNotFound, StoreUnavailable, DeliveryFailed) as e:
            logger.warning(
                "admin reply not delivered",
                extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
            )
            self._send_template(self._admin_uid, "operation_failed", operation="Reply", error=str(e))

    # ------------------------------------------------------------------
    # Guest path
    # ------------------------------------------------------------------

    def _handle_guest(self, message: InboundMessage) -> None:
        guest = message.chat_id
        log_ctx = safe_log_context(
            guest_hash=hash_identifier(guest),
            text_len=len(message.text or ""),
        )

        try:
            blocked = self._blocks.is_blocked(guest)
        except StoreUnavailable as e:
            logger.error("block check failed", extra={"extra_fields": log_ctx})
            self._send_template(
                self._admin_uid, "operation_failed", operation="Block check", error=str(e)
            )
            return

        if blocked:
            logger.info("blocked guest refused", extra={"extra_fields": log_ctx})
            self._send_template(guest, "guest_restricted")
            return

        try:
            self._identities.put(
                guest,
                IdentityProfile(username=message.username, display_name=message.first_name),
            )
        except StoreUnavailable:
            logger.warning("identity capture failed", extra={"extra_fields": log_ctx})

        try:
            relayed = _require_ok(
                "forwardMessage",
                self._messenger.forward_message(self._admin_uid, guest, message.message_id),
            )
        except DeliveryFailed:
            logger.error("relay to admin failed", extra={"extra_fields": log_ctx})
            return

        if relayed.message_id is not None:
            try:
                self._correlations.record(relayed.message_id, guest)
            except StoreUnavailable as e:
                logger.error("correlation record failed", extra={"extra_fields": log_ctx})
                self._send_template(
                    self._admin_uid, "operation_failed", operation="Reply mapping", error=str(e)
                )

        logger.info("guest message relayed", extra={"extra_fields": log_ctx})
        self._notify(guest)

    def _notify(self, guest: int | str) -> None:
        """Fraud alert on every message, otherwise a throttled identity notice."""
        try:
            if self._fraud.is_fraud(guest):
                self._send_card("fraud_alert", self._identities.get(guest))
                return
            if self._throttle.should_notify(guest):
                self._send_card("confirm_identity", self._identities.get(guest))
        except (FraudListUnavailable, StoreUnavailable) as e:
            logger.error(
                "notification decision failed",
                extra={
                    "extra_fields": safe_log_context(
                        guest_hash=hash_identifier(guest),
                        error_type=type(e).__name__,
                    )
                },
            )
            self._send_template(self._admin_uid, "notify_failed", error=str(e))

    # ------------------------------------------------------------------
    # Outbound helpers
    # ------------------------------------------------------------------

    def _send_plain(self, chat_id: int | str, text: str) -> DeliveryResult:
        result = self._messenger.send_text(chat_id, text)
        if not result.ok:
            logger.warning(
                "message not delivered",
                extra={"extra_fields": safe_log_context(to_hash=hash_identifier(chat_id))},
            )
        return result

    def _send_template(self, chat_id: int | str, template_key: str, **params: str) -> DeliveryResult:
        result = self._messenger.send_text(
            chat_id, render(template_key, params), parse_mode=parse_mode_for(template_key)
        )
        if not result.ok:
            logger.warning(
                "message not delivered",
                extra={
                    "extra_fields": safe_log_context(
                        template=template_key,
                        to_hash=hash_identifier(chat_id),
                    )
                },
            )
        return result

    def _send_card(self, template_key: str, card: GuestCard, **params: str) -> DeliveryResult:
        return self._send_template(
            self._admin_uid,
            template_key,
            guest_id=card.guest_id,
            username=card.username,
            display_name=card.display_name,
            **params,
        )
