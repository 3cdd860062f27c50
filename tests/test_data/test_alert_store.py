"""Tests for AlertStore against an in-memory SQLite database."""

from decimal import Decimal

import pytest

from conftest import NOW_MS, FakeClock
from pricewatch.data import AlertStore, PriceDatabase


class TestAlertStore:
    @pytest.mark.asyncio
    async def test_create_assigns_ids(self, alert_store: AlertStore) -> None:
        first = await alert_store.create("bitcoin", Decimal("50000"), "a@example.com")
        second = await alert_store.create("bitcoin", Decimal("50000"), "a@example.com")

        assert first.id != second.id
        assert first.target_price == Decimal("50000")
        assert first.created_at_ms == NOW_MS

    @pytest.mark.asyncio
    async def test_duplicates_allowed(self, alert_store: AlertStore) -> None:
        """No uniqueness constraint on (chain, email)."""
        await alert_store.create("ethereum", Decimal("4000"), "a@example.com")
        await alert_store.create("ethereum", Decimal("4000"), "a@example.com")

        assert len(await alert_store.list_all()) == 2

    @pytest.mark.asyncio
    async def test_list_all_round_trips_fields(self, alert_store: AlertStore) -> None:
        created = await alert_store.create("polygon", Decimal("0.75000001"), "p@example.com")

        [loaded] = await alert_store.list_all()

        assert loaded == created

    @pytest.mark.asyncio
    async def test_list_all_oldest_first(self, alert_store: AlertStore) -> None:
        a = await alert_store.create("bitcoin", Decimal("1"), "a@example.com")
        b = await alert_store.create("ethereum", Decimal("2"), "b@example.com")

        assert [x.id for x in await alert_store.list_all()] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_delete_by_id(self, alert_store: AlertStore) -> None:
        alert = await alert_store.create("bitcoin", Decimal("50000"), "a@example.com")

        assert await alert_store.delete_by_id(alert.id) is True
        assert await alert_store.delete_by_id(alert.id) is False
        assert await alert_store.get(alert.id) is None
        assert await alert_store.list_all() == []

    @pytest.mark.asyncio
    async def test_get(self, alert_store: AlertStore) -> None:
        alert = await alert_store.create("bitcoin", Decimal("50000"), "a@example.com")

        assert await alert_store.get(alert.id) == alert
        assert await alert_store.get(alert.id + 1000) is None

    @pytest.mark.asyncio
    async def test_created_at_follows_clock(
        self, alert_store: AlertStore, clock: FakeClock
    ) -> None:
        clock.advance(90)

        alert = await alert_store.create("solana", Decimal("150"), "s@example.com")

        assert alert.created_at_ms == NOW_MS + 90_000
        assert (await alert_store.get(alert.id)).created_at_ms == NOW_MS + 90_000  # type: ignore[union-attr]


class TestPriceDatabase:
    @pytest.mark.asyncio
    async def test_db_property_requires_connect(self) -> None:
        db = PriceDatabase(":memory:")
        with pytest.raises(RuntimeError):
            _ = db.db

    @pytest.mark.asyncio
    async def test_context_manager_creates_file(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        path = tmp_path / "nested" / "prices.db"

        async with PriceDatabase(str(path)) as db:
            cursor = await db.db.execute("SELECT version FROM schema_version")
            assert (await cursor.fetchone())[0] == 1

        assert path.exists()

    @pytest.mark.asyncio
    async def test_reconnect_keeps_data(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        path = str(tmp_path / "prices.db")

        async with PriceDatabase(path) as db:
            await AlertStore(db).create("bitcoin", Decimal("1"), "a@example.com")
        async with PriceDatabase(path) as db:
            assert len(await AlertStore(db).list_all()) == 1
