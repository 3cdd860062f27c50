"""On-demand operations invoked outside the schedule (by the HTTP API).

Failures surface to the caller as typed errors: UnsupportedChain and
InvalidRequest for bad input, FeedUnavailable for upstream problems.
"""

import re
import time
from collections.abc import Callable
from decimal import Decimal, InvalidOperation

from pricewatch.chains import resolve_chain
from pricewatch.data.alert_store import AlertStore
from pricewatch.data.price_store import PriceStore
from pricewatch.exceptions import InvalidRequest
from pricewatch.logging import get_logger
from pricewatch.models import Alert, PriceSample, SwapQuote
from pricewatch.swap.quoter import SwapQuoter

logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _to_decimal(value: Decimal | str | int | float, field: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise InvalidRequest(f"{field} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise InvalidRequest(f"{field} must be finite, got {value!r}")
    return result


class PriceService:
    """History queries, alert registration and swap quotes.

    Args:
        price_store: Sample series for history queries.
        alert_store: Destination for new alerts.
        quoter: Swap quote calculator.
        history_window_seconds: Look-back of ``get_hourly_prices``.
        swap_source_chain: Default source asset for ``get_swap_rate``.
        swap_target_chain: Default target asset for ``get_swap_rate``.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        price_store: PriceStore,
        alert_store: AlertStore,
        quoter: SwapQuoter,
        history_window_seconds: int = 86400,
        swap_source_chain: str = "ethereum",
        swap_target_chain: str = "bitcoin",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._price_store = price_store
        self._alert_store = alert_store
        self._quoter = quoter
        self._history_window_ms = history_window_seconds * 1000
        self._swap_source = swap_source_chain
        self._swap_target = swap_target_chain
        self._clock = clock

    async def get_hourly_prices(self, chain: str) -> list[PriceSample]:
        """Samples in ``[now - 24h, now]``, ascending. Empty when none exist."""
        canonical = resolve_chain(chain).value
        now_ms = int(self._clock() * 1000)
        samples = await self._price_store.range(
            canonical, now_ms - self._history_window_ms, now_ms
        )
        logger.debug("hourly_prices_loaded", chain=canonical, count=len(samples))
        return samples

    async def set_price_alert(
        self,
        chain: str,
        target_price: Decimal | str | int | float,
        email: str,
    ) -> Alert:
        """Register a one-shot alert for ``chain`` reaching ``target_price``."""
        canonical = resolve_chain(chain).value
        target = _to_decimal(target_price, "target_price")
        if target <= 0:
            raise InvalidRequest(f"target_price must be positive, got {target}")
        email = email.strip()
        if not _EMAIL_RE.match(email):
            raise InvalidRequest(f"invalid email address: {email!r}")

        alert = await self._alert_store.create(canonical, target, email)
        logger.info(
            "price_alert_set",
            alert_id=alert.id,
            chain=canonical,
            target_price=str(target),
        )
        return alert

    async def get_swap_rate(self, amount_in: Decimal | str | int | float) -> SwapQuote:
        """Quote ``amount_in`` of the configured source asset (ETH) in the target asset (BTC)."""
        amount = _to_decimal(amount_in, "amount")
        return await self._quoter.quote(amount, self._swap_source, self._swap_target)
