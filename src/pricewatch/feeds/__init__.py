"""Price feed layer -- pluggable USD spot price sources."""

from pricewatch.config import FeedSettings
from pricewatch.feeds.client import PriceFeed
from pricewatch.feeds.coingecko import CoinGeckoPriceFeed
from pricewatch.feeds.exchange import ExchangePriceFeed


def build_price_feed(settings: FeedSettings, timeout: float = 10.0) -> PriceFeed:
    """Create the feed selected by ``settings.provider``."""
    if settings.provider == "exchange":
        return ExchangePriceFeed(
            exchange_id=settings.exchange_id,
            quote_currency=settings.quote_currency,
        )
    return CoinGeckoPriceFeed(
        base_url=settings.coingecko_base_url,
        api_key=settings.coingecko_api_key.get_secret_value(),
        timeout=timeout,
    )


__all__ = ["CoinGeckoPriceFeed", "ExchangePriceFeed", "PriceFeed", "build_price_feed"]
