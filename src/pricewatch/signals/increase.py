"""Short-term price increase detection.

Compares the latest price against the latest price at least one window
(default one hour) old. The rule is a pure function of a sample history so
it can be tested without a store. The monitoring engine feeds it the two
samples it reads from the store and asks for a strict baseline
(``timestamp < now - window``), matching the store's ``latest_before``.

CRITICAL: All computations use Decimal. Never use float. Results are exact;
rounding happens only when a value is rendered into a message.
"""

from collections.abc import Iterable
from decimal import Decimal

from pricewatch.models import PriceSample

ONE_HOUR_MS = 60 * 60 * 1000


def percent_change(past: Decimal, current: Decimal) -> Decimal | None:
    """Return ``(current - past) / past * 100``, unrounded.

    Returns None when ``past`` is zero or negative; such a baseline carries
    no signal.
    """
    if past <= 0:
        return None
    return (current - past) / past * Decimal("100")


def _latest_until(
    history: Iterable[PriceSample], cutoff_ms: int, inclusive: bool = True
) -> PriceSample | None:
    best: PriceSample | None = None
    for sample in history:
        if sample.timestamp_ms > cutoff_ms or (not inclusive and sample.timestamp_ms == cutoff_ms):
            continue
        # >= keeps the later-written sample on timestamp ties
        if best is None or sample.timestamp_ms >= best.timestamp_ms:
            best = sample
    return best


def detect_increase(
    history: Iterable[PriceSample],
    now_ms: int,
    window_ms: int = ONE_HOUR_MS,
    strict_baseline: bool = False,
) -> Decimal | None:
    """Percentage change between the current and the one-window-old price.

    ``current`` is the sample with the greatest timestamp <= ``now_ms``;
    ``past`` is the sample with the greatest timestamp <= ``now_ms - window_ms``
    (``<`` when ``strict_baseline`` is set, as the monitoring engine does).

    Args:
        history: Samples for a single chain, in write order.
        now_ms: Evaluation instant (Unix milliseconds).
        window_ms: Look-back distance.
        strict_baseline: Exclude a sample exactly one window old from ``past``.

    Returns:
        The exact percentage change, or None if either sample is missing or
        the past price is not positive. The caller applies the threshold.
    """
    samples = list(history)
    current = _latest_until(samples, now_ms)
    past = _latest_until(samples, now_ms - window_ms, inclusive=not strict_baseline)
    if current is None or past is None:
        return None
    return percent_change(past.price, current.price)


def is_significant_increase(pct: Decimal | None, threshold: Decimal = Decimal("3.0")) -> bool:
    """Strict greater-than threshold check; None never qualifies."""
    return pct is not None and pct > threshold
