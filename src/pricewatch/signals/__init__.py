"""Price movement signals."""

from pricewatch.signals.increase import (
    ONE_HOUR_MS,
    detect_increase,
    is_significant_increase,
    percent_change,
)

__all__ = ["ONE_HOUR_MS", "detect_increase", "is_significant_increase", "percent_change"]
