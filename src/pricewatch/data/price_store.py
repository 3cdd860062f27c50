"""Append-only price sample series backed by SQLite.

CRITICAL: Prices are stored as TEXT in SQLite and restored as Decimal on read.
"""

from decimal import Decimal

from pricewatch.data.database import PriceDatabase
from pricewatch.logging import get_logger
from pricewatch.models import PriceSample

logger = get_logger(__name__)

_SELECT_COLUMNS = "SELECT chain, price, timestamp_ms FROM price_samples"


def _row_to_sample(row) -> PriceSample:  # type: ignore[no-untyped-def]
    return PriceSample(chain=row[0], price=Decimal(row[1]), timestamp_ms=row[2])


class PriceStore:
    """Typed read/write access to the ``price_samples`` table.

    Samples are never updated or deleted. Ties on timestamp are broken by
    insertion order, so "latest" always means the most recently written.
    """

    def __init__(self, database: PriceDatabase) -> None:
        self._database = database

    async def save(self, sample: PriceSample) -> None:
        """Append a sample."""
        await self._database.db.execute(
            "INSERT INTO price_samples (chain, price, timestamp_ms) VALUES (?, ?, ?)",
            (sample.chain, str(sample.price), sample.timestamp_ms),
        )
        await self._database.db.commit()
        logger.debug(
            "price_sample_saved",
            chain=sample.chain,
            price=str(sample.price),
            timestamp_ms=sample.timestamp_ms,
        )

    async def latest(self, chain: str, at_or_before_ms: int | None = None) -> PriceSample | None:
        """Most recent sample for a chain, optionally bounded by ``at_or_before_ms`` (inclusive)."""
        params: list = [chain]
        query = f"{_SELECT_COLUMNS} WHERE chain = ?"
        if at_or_before_ms is not None:
            query += " AND timestamp_ms <= ?"
            params.append(at_or_before_ms)
        query += " ORDER BY timestamp_ms DESC, id DESC LIMIT 1"

        cursor = await self._database.db.execute(query, params)
        row = await cursor.fetchone()
        return _row_to_sample(row) if row is not None else None

    async def latest_before(self, chain: str, timestamp_ms: int) -> PriceSample | None:
        """Most recent sample strictly older than ``timestamp_ms``."""
        cursor = await self._database.db.execute(
            f"{_SELECT_COLUMNS} WHERE chain = ? AND timestamp_ms < ? "
            "ORDER BY timestamp_ms DESC, id DESC LIMIT 1",
            (chain, timestamp_ms),
        )
        row = await cursor.fetchone()
        return _row_to_sample(row) if row is not None else None

    async def range(self, chain: str, since_ms: int, until_ms: int) -> list[PriceSample]:
        """Samples with ``since_ms <= timestamp_ms <= until_ms``, ascending by timestamp."""
        cursor = await self._database.db.execute(
            f"{_SELECT_COLUMNS} WHERE chain = ? AND timestamp_ms >= ? AND timestamp_ms <= ? "
            "ORDER BY timestamp_ms ASC, id ASC",
            (chain, since_ms, until_ms),
        )
        rows = await cursor.fetchall()
        return [_row_to_sample(row) for row in rows]
