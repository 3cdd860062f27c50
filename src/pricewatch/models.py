"""Shared data models for the price monitoring service.

CRITICAL: All monetary values use Decimal. Never use float for prices, amounts, or fees.
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PriceSample:
    """A single USD spot price observation for one chain.

    Stored in SQLite with price as TEXT to preserve Decimal precision.
    """

    chain: str
    price: Decimal
    timestamp_ms: int


@dataclass(frozen=True)
class Alert:
    """A pending one-shot alert: notify ``email`` once ``chain`` trades at or above target."""

    id: int
    chain: str
    target_price: Decimal
    email: str
    created_at_ms: int = 0

    def is_satisfied_by(self, price: Decimal) -> bool:
        """Whether a live price meets the target (inclusive)."""
        return price >= self.target_price


@dataclass(frozen=True)
class SwapQuote:
    """Result of converting an amount of one asset into another, net of fees."""

    source_chain: str
    target_chain: str
    amount_in: Decimal
    target_amount: Decimal
    fee_in_source: Decimal
    fee_in_usd: Decimal
    source_price_usd: Decimal
    target_price_usd: Decimal


@dataclass
class CycleReport:
    """Outcome counters for a single monitoring cycle."""

    cycle_id: str
    started_at: float
    samples_written: int = 0
    increases_notified: int = 0
    alerts_triggered: int = 0
    errors: list[str] = field(default_factory=list)
    finished_at: float | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at is None:
            return None
        return self.finished_at - self.started_at
