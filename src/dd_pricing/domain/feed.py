# src/dd_pricing/domain/feed.py
"""Price feed Protocol plus the price-snapshot helper shared by every
caller that stamps start or end prices onto a round."""

from typing import Protocol

from src.dd_pricing.domain.models import TokenQuote
from src.dd_round.domain.models import Token


class PriceFeedProtocol(Protocol):
    async def discover_tokens(self, count: int) -> list[Token]: ...

    async def fetch_prices(self, token_ids: list[str]) -> dict[str, float]:
        """token id -> USD price. Tokens without a quote are absent."""
        ...

    async def fetch_round_token_prices(self, tokens: list[Token]) -> list[TokenQuote]: ...


async def snapshot_prices(feed: PriceFeedProtocol, tokens: list[Token]) -> dict[str, float]:
    """Price every token, keyed by symbol. A missing quote is recorded as 0."""
    by_id = await feed.fetch_prices([t.id for t in tokens])
    return {t.symbol: by_id.get(t.id, 0.0) for t in tokens}
