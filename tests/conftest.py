"""Shared test fixtures for the price monitoring service."""

from collections.abc import AsyncIterator, Mapping
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from pricewatch.config import MonitorSettings
from pricewatch.data import AlertStore, PriceDatabase, PriceStore
from pricewatch.exceptions import UnsupportedChain
from pricewatch.feeds.client import PriceFeed
from pricewatch.notify.notifier import Notifier

# Fixed evaluation instant: 2024-01-01T00:00:00Z
NOW_S = 1_704_067_200.0
NOW_MS = int(NOW_S * 1000)


class FakeClock:
    """Callable clock returning a settable Unix time in seconds."""

    def __init__(self, now: float = NOW_S) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_feed(prices: Mapping[str, Decimal | Exception]) -> AsyncMock:
    """AsyncMock PriceFeed returning ``prices[chain]`` (raised if it is an exception)."""
    feed = AsyncMock(spec=PriceFeed)

    async def _fetch(chain: str) -> Decimal:
        if chain not in prices:
            raise UnsupportedChain(chain)
        value = prices[chain]
        if isinstance(value, Exception):
            raise value
        return value

    feed.fetch.side_effect = _fetch
    return feed


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monitor_settings() -> MonitorSettings:
    """MonitorSettings with test defaults (short timeouts, fixed ops recipient)."""
    return MonitorSettings(
        tracked_chains=["ethereum", "polygon"],
        watched_chains=["ethereum", "polygon", "bitcoin", "solana"],
        call_timeout_seconds=0.5,
        ops_alert_recipient="ops@example.com",
    )


@pytest.fixture
def notifier() -> AsyncMock:
    """Mock Notifier that accepts every message."""
    return AsyncMock(spec=Notifier)


@pytest_asyncio.fixture
async def database() -> AsyncIterator[PriceDatabase]:
    """Connected in-memory PriceDatabase."""
    db = PriceDatabase(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def price_store(database: PriceDatabase) -> PriceStore:
    return PriceStore(database)


@pytest.fixture
def alert_store(database: PriceDatabase, clock: FakeClock) -> AlertStore:
    return AlertStore(database, clock=clock)
