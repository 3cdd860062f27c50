"""Swap quoting."""

from pricewatch.swap.quoter import SwapQuoter

__all__ = ["SwapQuoter"]
