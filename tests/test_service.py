"""Tests for PriceService on-demand operations."""

from decimal import Decimal

import pytest

from conftest import NOW_MS, FakeClock, make_feed
from pricewatch.data import AlertStore, PriceStore
from pricewatch.exceptions import FeedUnavailable, InvalidRequest, UnsupportedChain
from pricewatch.models import PriceSample
from pricewatch.service import PriceService
from pricewatch.swap import SwapQuoter

DAY_MS = 86_400_000


@pytest.fixture
def service(price_store: PriceStore, alert_store: AlertStore, clock: FakeClock) -> PriceService:
    feed = make_feed({"ethereum": Decimal("3000"), "bitcoin": Decimal("60000")})
    return PriceService(
        price_store=price_store,
        alert_store=alert_store,
        quoter=SwapQuoter(feed, fee_rate=Decimal("0.03"), timeout=0.5),
        clock=clock,
    )


class TestGetHourlyPrices:
    @pytest.mark.asyncio
    async def test_window_is_inclusive_and_ascending(
        self, service: PriceService, price_store: PriceStore
    ) -> None:
        for ts, price in [
            (NOW_MS, "5"),
            (NOW_MS - DAY_MS - 1, "1"),  # too old
            (NOW_MS - DAY_MS, "2"),
            (NOW_MS - 1000, "4"),
            (NOW_MS - DAY_MS // 2, "3"),
            (NOW_MS + 1000, "6"),  # future
        ]:
            await price_store.save(PriceSample("ethereum", Decimal(price), ts))

        samples = await service.get_hourly_prices("ethereum")

        assert [s.price for s in samples] == [Decimal(p) for p in ("2", "3", "4", "5")]
        assert samples[0].timestamp_ms == NOW_MS - DAY_MS

    @pytest.mark.asyncio
    async def test_no_samples_returns_empty(self, service: PriceService) -> None:
        assert await service.get_hourly_prices("polygon") == []

    @pytest.mark.asyncio
    async def test_chain_name_is_normalized(
        self, service: PriceService, price_store: PriceStore
    ) -> None:
        await price_store.save(PriceSample("polygon", Decimal("0.5"), NOW_MS))

        samples = await service.get_hourly_prices(" Polygon ")

        assert len(samples) == 1

    @pytest.mark.asyncio
    async def test_unsupported_chain(self, service: PriceService) -> None:
        with pytest.raises(UnsupportedChain):
            await service.get_hourly_prices("dogecoin")


class TestSetPriceAlert:
    @pytest.mark.asyncio
    async def test_creates_alert(self, service: PriceService, alert_store: AlertStore) -> None:
        alert = await service.set_price_alert("Bitcoin", "50000.50", " user@example.com ")

        assert alert.chain == "bitcoin"
        assert alert.target_price == Decimal("50000.50")
        assert alert.email == "user@example.com"
        assert await alert_store.list_all() == [alert]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["0", "-5", "abc", "NaN", "Infinity"])
    async def test_rejects_invalid_target(
        self, service: PriceService, alert_store: AlertStore, target: str
    ) -> None:
        with pytest.raises(InvalidRequest):
            await service.set_price_alert("bitcoin", target, "user@example.com")
        assert await alert_store.list_all() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["", "user", "user@", "user@example", "a b@example.com"])
    async def test_rejects_invalid_email(self, service: PriceService, email: str) -> None:
        with pytest.raises(InvalidRequest):
            await service.set_price_alert("bitcoin", Decimal("50000"), email)

    @pytest.mark.asyncio
    async def test_rejects_unsupported_chain(
        self, service: PriceService, alert_store: AlertStore
    ) -> None:
        with pytest.raises(UnsupportedChain):
            await service.set_price_alert("dogecoin", Decimal("1"), "user@example.com")
        assert await alert_store.list_all() == []


class TestGetSwapRate:
    @pytest.mark.asyncio
    async def test_quotes_eth_to_btc(self, service: PriceService) -> None:
        quote = await service.get_swap_rate("1")

        assert quote.source_chain == "ethereum"
        assert quote.target_chain == "bitcoin"
        assert quote.target_amount == Decimal("0.0485")
        assert quote.fee_in_usd == Decimal("90")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1", "one", "NaN"])
    async def test_rejects_invalid_amount(self, service: PriceService, amount: str) -> None:
        with pytest.raises(InvalidRequest):
            await service.get_swap_rate(amount)

    @pytest.mark.asyncio
    async def test_feed_failure_propagates(
        self, price_store: PriceStore, alert_store: AlertStore, clock: FakeClock
    ) -> None:
        feed = make_feed({"ethereum": Decimal("3000"), "bitcoin": FeedUnavailable("bitcoin", "x")})
        service = PriceService(price_store, alert_store, SwapQuoter(feed), clock=clock)

        with pytest.raises(FeedUnavailable):
            await service.get_swap_rate(Decimal("1"))
