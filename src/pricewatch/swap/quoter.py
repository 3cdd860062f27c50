"""Cross-asset swap quotes.

Converts an amount of a source asset into a target asset at live USD
prices, charging a fixed fee on the input amount.

Example (fee 3%, ETH $3000, BTC $60000, 1 ETH in):
    amount_usd     = 1 * 3000          = 3000
    fee_in_source  = 1 * 0.03          = 0.03 ETH
    fee_in_usd     = 0.03 * 3000       = 90
    target_gross   = 3000 / 60000      = 0.05 BTC
    target_amount  = 0.05 - 90 / 60000 = 0.0485 BTC
"""

import asyncio
from decimal import Decimal

from pricewatch.chains import resolve_chain
from pricewatch.exceptions import FeedUnavailable, InvalidRequest
from pricewatch.feeds.client import PriceFeed
from pricewatch.logging import get_logger
from pricewatch.models import SwapQuote

logger = get_logger(__name__)


class SwapQuoter:
    """Stateless quote calculator over two live price lookups.

    Args:
        feed: Price source for both legs.
        fee_rate: Fraction of the input amount charged as fee.
        timeout: Per-lookup timeout in seconds.
    """

    def __init__(
        self,
        feed: PriceFeed,
        fee_rate: Decimal = Decimal("0.03"),
        timeout: float = 10.0,
    ) -> None:
        self._feed = feed
        self._fee_rate = fee_rate
        self._timeout = timeout

    async def _price(self, chain: str) -> Decimal:
        try:
            return await asyncio.wait_for(self._feed.fetch(chain), timeout=self._timeout)
        except TimeoutError as e:
            raise FeedUnavailable(chain, "timed out") from e

    async def quote(
        self,
        amount_in: Decimal,
        source_chain: str = "ethereum",
        target_chain: str = "bitcoin",
    ) -> SwapQuote:
        """Quote ``amount_in`` of ``source_chain`` in units of ``target_chain``.

        Raises:
            InvalidRequest: ``amount_in`` is not positive.
            UnsupportedChain: Either chain is unknown.
            FeedUnavailable: Either price lookup failed. No partial result.
        """
        if not amount_in.is_finite() or amount_in <= 0:
            raise InvalidRequest(f"amount must be positive, got {amount_in}")
        source = resolve_chain(source_chain).value
        target = resolve_chain(target_chain).value

        source_price = await self._price(source)
        target_price = await self._price(target)

        amount_usd = amount_in * source_price
        fee_in_source = amount_in * self._fee_rate
        fee_in_usd = fee_in_source * source_price
        target_gross = amount_usd / target_price
        target_amount = target_gross - fee_in_usd / target_price

        logger.info(
            "swap_quoted",
            source=source,
            target=target,
            amount_in=str(amount_in),
            target_amount=str(target_amount),
            fee_in_usd=str(fee_in_usd),
        )
        return SwapQuote(
            source_chain=source,
            target_chain=target,
            amount_in=amount_in,
            target_amount=target_amount,
            fee_in_source=fee_in_source,
            fee_in_usd=fee_in_usd,
            source_price_usd=source_price,
            target_price_usd=target_price,
        )
