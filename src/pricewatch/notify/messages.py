"""Subject and body text for outgoing notifications."""

from decimal import ROUND_HALF_UP, Decimal

_TWO_PLACES = Decimal("0.01")


def _fmt(value: Decimal) -> str:
    return str(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def increase_message(chain: str, increase_pct: Decimal, window_hours: int = 1) -> tuple[str, str]:
    """Operations notice for an abnormal short-term increase."""
    name = chain.upper()
    window = "hour" if window_hours == 1 else f"{window_hours} hours"
    subject = f"{name} Price Alert"
    body = f"The price of {name} has increased by {_fmt(increase_pct)}% in the last {window}."
    return subject, body


def target_reached_message(chain: str, price: Decimal, target_price: Decimal) -> tuple[str, str]:
    """User notice that a registered target has been reached."""
    name = chain.upper()
    subject = f"{name} Price Alert"
    body = (
        f"{name} has reached your target price of ${_fmt(target_price)}. "
        f"Current price: ${_fmt(price)}."
    )
    return subject, body
