"""Custom exceptions for the price monitoring service.

Feed, notification and request-validation errors live here to avoid
circular imports between the feed, notify, engine and service modules.
"""


class PriceWatchError(Exception):
    """Base exception for all pricewatch errors."""


class UnsupportedChain(PriceWatchError, ValueError):
    """Raised when a chain identifier is not in the static chain table."""

    def __init__(self, chain: str) -> None:
        super().__init__(f"Unsupported chain: {chain}")
        self.chain = chain


class FeedUnavailable(PriceWatchError):
    """Raised when the upstream price source fails or returns unusable data."""

    def __init__(self, chain: str, reason: str) -> None:
        super().__init__(f"Failed to fetch price for {chain}: {reason}")
        self.chain = chain
        self.reason = reason


class NotificationFailure(PriceWatchError):
    """Raised when a notification could not be handed to the transport."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Failed to notify {recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


class InvalidRequest(PriceWatchError, ValueError):
    """Raised when an on-demand operation receives invalid input."""
