"""Persistence layer.

Provides the SQLite connection manager and typed stores for the price
sample series and pending alerts.
"""

from pricewatch.data.alert_store import AlertStore
from pricewatch.data.database import PriceDatabase
from pricewatch.data.price_store import PriceStore

__all__ = ["AlertStore", "PriceDatabase", "PriceStore"]
