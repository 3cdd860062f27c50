"""Supported chains and their identifiers in each price source's vocabulary.

The tables are closed: a chain missing from them fails fast with
UnsupportedChain instead of producing an upstream request.
"""

from enum import Enum

from pricewatch.exceptions import UnsupportedChain


class Chain(str, Enum):
    """Canonical chain identifiers (lower-case)."""

    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    BITCOIN = "bitcoin"
    SOLANA = "solana"


# Static mapping from canonical chains to CoinGecko coin IDs
CHAIN_TO_COINGECKO: dict[Chain, str] = {
    Chain.ETHEREUM: "ethereum",
    Chain.POLYGON: "matic-network",
    Chain.BITCOIN: "bitcoin",
    Chain.SOLANA: "solana",
}

# Static mapping from canonical chains to exchange base assets
CHAIN_TO_EXCHANGE_ASSET: dict[Chain, str] = {
    Chain.ETHEREUM: "ETH",
    Chain.POLYGON: "POL",
    Chain.BITCOIN: "BTC",
    Chain.SOLANA: "SOL",
}


def resolve_chain(name: str) -> Chain:
    """Return the canonical Chain for a user-supplied identifier.

    Matching is case-insensitive and ignores surrounding whitespace.

    Raises:
        UnsupportedChain: If the identifier is not a known chain.
    """
    try:
        return Chain(name.strip().lower())
    except (ValueError, AttributeError):
        raise UnsupportedChain(str(name)) from None
