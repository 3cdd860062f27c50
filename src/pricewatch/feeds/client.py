"""Abstract price feed interface.

Defines the contract for all price source implementations. The engine,
swap quoter and service depend only on this interface, keeping provider
specifics isolated in the concrete feeds.
"""

from abc import ABC, abstractmethod
from decimal import Decimal


class PriceFeed(ABC):
    """Abstract base class for USD spot price sources."""

    async def connect(self) -> None:
        """Prepare the feed for use (load markets, open sessions)."""

    async def close(self) -> None:
        """Release any resources held by the feed."""

    @abstractmethod
    async def fetch(self, chain: str) -> Decimal:
        """Return the current USD price for a chain.

        Raises:
            UnsupportedChain: The identifier is not in the static chain table.
                No request is made.
            FeedUnavailable: Network error, timeout, malformed response or
                missing price field.
        """
        ...
