"""Exchange spot ticker feed via ccxt async.

Alternative to CoinGecko: reads the last traded price of ``<ASSET>/<QUOTE>``
spot markets from a ccxt exchange (Bybit by default). Stablecoin quotes are
treated as USD.
"""

from decimal import Decimal, InvalidOperation

import ccxt.async_support as ccxt_async

from pricewatch.chains import CHAIN_TO_EXCHANGE_ASSET, resolve_chain
from pricewatch.exceptions import FeedUnavailable
from pricewatch.feeds.client import PriceFeed
from pricewatch.logging import get_logger

logger = get_logger(__name__)


class ExchangePriceFeed(PriceFeed):
    """Concrete feed backed by a ccxt async exchange's public tickers.

    Args:
        exchange_id: ccxt exchange id (e.g. "bybit", "binance").
        quote_currency: Quote asset of the spot markets (e.g. "USDT").
        exchange: Pre-built ccxt exchange instance (used by tests).
    """

    def __init__(
        self,
        exchange_id: str = "bybit",
        quote_currency: str = "USDT",
        exchange: ccxt_async.Exchange | None = None,
    ) -> None:
        if exchange is None:
            exchange_cls = getattr(ccxt_async, exchange_id)
            exchange = exchange_cls(
                {"enableRateLimit": True, "options": {"defaultType": "spot"}}
            )
        self._exchange = exchange
        self._exchange_id = exchange_id
        self._quote = quote_currency.upper()

    def symbol_for(self, chain: str) -> str:
        """Return the spot market symbol for a chain, e.g. ``ETH/USDT``."""
        asset = CHAIN_TO_EXCHANGE_ASSET[resolve_chain(chain)]
        return f"{asset}/{self._quote}"

    async def connect(self) -> None:
        """Load markets so the first fetch does not pay for it."""
        logger.info("connecting_to_exchange_feed", exchange=self._exchange_id)
        markets = await self._exchange.load_markets()
        logger.info(
            "exchange_feed_connected",
            exchange=self._exchange_id,
            market_count=len(markets),
        )

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        await self._exchange.close()
        logger.info("exchange_feed_closed", exchange=self._exchange_id)

    async def fetch(self, chain: str) -> Decimal:
        symbol = self.symbol_for(chain)
        canonical = resolve_chain(chain).value

        try:
            ticker = await self._exchange.fetch_ticker(symbol)
        except ccxt_async.BaseError as e:
            logger.warning(
                "exchange_ticker_failed",
                chain=canonical,
                symbol=symbol,
                error=str(e),
            )
            raise FeedUnavailable(canonical, str(e)) from e

        raw = ticker.get("last") if isinstance(ticker, dict) else None
        if raw is None:
            raise FeedUnavailable(canonical, "missing price field")
        try:
            price = Decimal(str(raw))
        except InvalidOperation as e:
            raise FeedUnavailable(canonical, f"invalid price {raw!r}") from e

        if not price.is_finite() or price <= 0:
            raise FeedUnavailable(canonical, f"invalid price {price}")
        return price
