"""Pending target-price alerts backed by SQLite.

CRITICAL: Target prices are stored as TEXT in SQLite and restored as Decimal on read.
"""

import time
from collections.abc import Callable
from decimal import Decimal

from pricewatch.data.database import PriceDatabase
from pricewatch.logging import get_logger
from pricewatch.models import Alert

logger = get_logger(__name__)

_SELECT_COLUMNS = "SELECT id, chain, target_price, email, created_at_ms FROM price_alerts"


def _row_to_alert(row) -> Alert:  # type: ignore[no-untyped-def]
    return Alert(
        id=row[0],
        chain=row[1],
        target_price=Decimal(row[2]),
        email=row[3],
        created_at_ms=row[4],
    )


class AlertStore:
    """Typed read/write access to the ``price_alerts`` table.

    Args:
        database: Connected PriceDatabase.
        clock: Returns the current Unix time in seconds, used for ``created_at_ms``.
    """

    def __init__(
        self, database: PriceDatabase, clock: Callable[[], float] = time.time
    ) -> None:
        self._database = database
        self._clock = clock

    async def create(self, chain: str, target_price: Decimal, email: str) -> Alert:
        """Insert a new alert and return it with its assigned id."""
        created_at_ms = int(self._clock() * 1000)
        cursor = await self._database.db.execute(
            "INSERT INTO price_alerts (chain, target_price, email, created_at_ms) "
            "VALUES (?, ?, ?, ?)",
            (chain, str(target_price), email, created_at_ms),
        )
        await self._database.db.commit()
        alert_id = cursor.lastrowid
        assert alert_id is not None
        logger.debug("alert_created", alert_id=alert_id, chain=chain)
        return Alert(
            id=alert_id,
            chain=chain,
            target_price=target_price,
            email=email,
            created_at_ms=created_at_ms,
        )

    async def list_all(self) -> list[Alert]:
        """All pending alerts, oldest first."""
        cursor = await self._database.db.execute(f"{_SELECT_COLUMNS} ORDER BY id ASC")
        rows = await cursor.fetchall()
        return [_row_to_alert(row) for row in rows]

    async def get(self, alert_id: int) -> Alert | None:
        cursor = await self._database.db.execute(
            f"{_SELECT_COLUMNS} WHERE id = ?", (alert_id,)
        )
        row = await cursor.fetchone()
        return _row_to_alert(row) if row is not None else None

    async def delete_by_id(self, alert_id: int) -> bool:
        """Delete an alert. Returns False if it was already gone."""
        cursor = await self._database.db.execute(
            "DELETE FROM price_alerts WHERE id = ?", (alert_id,)
        )
        await self._database.db.commit()
        return cursor.rowcount > 0
