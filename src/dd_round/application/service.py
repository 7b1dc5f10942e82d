"""RoundQueryService — read projections over the round store.

All methods are read-only.
"""

from collections.abc import Callable

from config.settings import settings
from src.dd_common.datetime_utils import now_ms
from src.dd_pricing.domain.feed import PriceFeedProtocol
from src.dd_round.application.schemas import (
    BettingStatusOut,
    CurrentRoundResponse,
    LeaderboardEntryOut,
    LeaderboardResponse,
    PricesResponse,
    RoundConfigOut,
    RoundOut,
    StakeOut,
    TokenPriceOut,
)
from src.dd_round.domain.repository import RoundStoreProtocol
from src.dd_round.domain.window import resolve_betting_state

ACTIVITY_LIMIT = 10


class RoundQueryService:
    def __init__(
        self,
        store: RoundStoreProtocol,
        price_feed: PriceFeedProtocol,
        *,
        clock: Callable[[], int] = now_ms,
        round_duration_ms: int = settings.ROUND_DURATION_MS,
        staking_window_ms: int = settings.STAKING_WINDOW_MS,
        preview_window_ms: int = settings.PREVIEW_WINDOW_MS,
    ) -> None:
        self._store = store
        self._feed = price_feed
        self._clock = clock
        self._config = RoundConfigOut(
            round_duration=round_duration_ms,
            betting_window=staking_window_ms,
            preview_window=preview_window_ms,
        )

    async def get_current_state(self) -> CurrentRoundResponse:
        live = await self._store.get_live_round()
        preview = await self._store.get_next_round()
        activity = await self._store.get_activity_feed(ACTIVITY_LIMIT)
        state = resolve_betting_state(
            live, preview, self._clock(), self._config.betting_window
        )
        return CurrentRoundResponse(
            live_round=RoundOut.from_domain(live) if live else None,
            next_round=RoundOut.from_domain(preview) if preview else None,
            live_bet_counts=live.bet_counts_by_token() if live else {},
            next_bet_counts=preview.bet_counts_by_token() if preview else {},
            activity=[StakeOut.from_domain(s) for s in activity],
            betting=BettingStatusOut.from_state(state),
            config=self._config,
        )

    async def get_leaderboard(self, limit: int) -> LeaderboardResponse:
        entries = await self._store.get_leaderboard(limit)
        return LeaderboardResponse(
            leaderboard=[LeaderboardEntryOut.from_domain(e) for e in entries]
        )

    async def get_prices(self) -> PricesResponse:
        """Current quotes for the live round's tokens; empty when no round is live."""
        live = await self._store.get_live_round()
        if live is None:
            return PricesResponse(prices=[], timestamp=self._clock())
        quotes = await self._feed.fetch_round_token_prices(list(live.tokens))
        return PricesResponse(
            prices=[TokenPriceOut.from_quote(q) for q in quotes],
            timestamp=self._clock(),
        )
