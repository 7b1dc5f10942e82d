"""Domain models for dd_pricing — pure dataclasses."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MarketToken:
    """A discovery candidate, before it is selected into a round."""

    id: str
    symbol: str
    name: str
    image: str
    current_price: float
    price_change_24h: float
    total_volume: float
    address: str | None = None


@dataclass(frozen=True)
class TokenQuote:
    symbol: str
    price: float
    change_24h: float
