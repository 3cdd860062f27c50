"""CoinGecko simple-price feed.

Fetches USD spot prices via the CoinGecko free API using urllib.request
(stdlib). The blocking request runs in a worker thread so the event loop
is never stalled by a slow upstream.
"""

import asyncio
import json
import urllib.parse
import urllib.request
from decimal import Decimal, InvalidOperation

from pricewatch.chains import CHAIN_TO_COINGECKO, resolve_chain
from pricewatch.exceptions import FeedUnavailable
from pricewatch.feeds.client import PriceFeed
from pricewatch.logging import get_logger

logger = get_logger(__name__)


class CoinGeckoPriceFeed(PriceFeed):
    """Fetches spot prices from CoinGecko's ``/simple/price`` endpoint.

    Args:
        base_url: API root, e.g. ``https://api.coingecko.com/api/v3``.
        api_key: Optional CoinGecko demo API key for higher rate limits.
        timeout: Socket timeout for a single request in seconds.
    """

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        api_key: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or None
        self._timeout = timeout

    def _build_url(self, coin_id: str) -> str:
        params = {"ids": coin_id, "vs_currencies": "usd"}
        if self._api_key:
            params["x_cg_demo_api_key"] = self._api_key
        return f"{self._base_url}/simple/price?{urllib.parse.urlencode(params)}"

    def _request(self, url: str) -> dict:
        headers = {"Accept": "application/json", "User-Agent": "PriceWatch/1.0"}
        req = urllib.request.Request(url, headers=headers)
        with urllib.request.urlopen(req, timeout=self._timeout) as resp:
            return json.loads(resp.read())

    async def fetch(self, chain: str) -> Decimal:
        canonical = resolve_chain(chain)
        coin_id = CHAIN_TO_COINGECKO[canonical]
        url = self._build_url(coin_id)

        try:
            data = await asyncio.to_thread(self._request, url)
        except OSError as e:
            logger.warning("coingecko_request_failed", chain=canonical.value, error=str(e))
            raise FeedUnavailable(canonical.value, str(e)) from e
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise FeedUnavailable(canonical.value, f"malformed response: {e}") from e

        try:
            raw = data[coin_id]["usd"]
            price = Decimal(str(raw))
        except (KeyError, TypeError, InvalidOperation) as e:
            raise FeedUnavailable(canonical.value, "missing price field") from e

        if not price.is_finite() or price <= 0:
            raise FeedUnavailable(canonical.value, f"invalid price {price}")

        logger.debug("coingecko_price_fetched", chain=canonical.value, price=str(price))
        return price
