"""Error taxonomy for the relay.

None of these are fatal to the process: each inbound update fails on its
own and the admin is told about it where that makes sense.
"""


class RelayError(Exception):
    """Base class for recoverable relay errors."""

    pass


class CorrelationNotFound(RelayError):
    """Raised when a replied-to message has no recorded guest mapping."""

    def __init__(self, relayed_message_id: int | str) -> None:
        super().__init__(f"no guest mapping for message {relayed_message_id}")
        self.relayed_message_id = relayed_message_id


class StoreUnavailable(RelayError):
    """Raised when the key-value store cannot be read or written."""

    pass


class FraudListUnavailable(RelayError):
    """Raised when the fraud list cannot be fetched."""

    pass


class DeliveryFailed(RelayError):
    """Raised when an outbound Telegram call does not succeed."""

    def __init__(self, method: str, description: str | None = None) -> None:
        super().__init__(f"{method} failed: {description or 'unknown error'}")
        self.method = method
        self.description = description
