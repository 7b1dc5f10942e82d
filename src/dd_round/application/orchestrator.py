"""RoundAdvancementService — the time-driven catch-up procedure.

There is no background scheduler. Whoever calls ``advance()`` (a cron
ping, a poller) moves the state machine forward as far as the clock says
it should be:

  1. settle an expired live round, then promote the preview (or start fresh)
  2. create a preview inside the last PREVIEW_WINDOW of the live round
  3. gap healing: no live round but a preview exists -> promote it
  4. cold start: neither exists -> start a live round

Each step re-reads the store, so a crash or error midway is repaired by
the next call. Concurrent calls are serialised by a short-lived advisory
lock; a caller that loses the lock does nothing.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from config.settings import settings
from src.dd_common.datetime_utils import now_ms
from src.dd_pricing.domain.feed import PriceFeedProtocol, snapshot_prices
from src.dd_round.domain.models import LiveRound, PreviewRound
from src.dd_round.domain.repository import RoundStoreProtocol
from src.dd_round.domain.window import has_expired, should_create_preview
from src.dd_settlement.application.service import SettlementService

logger = logging.getLogger("dd.round")

ADVANCEMENT_IN_PROGRESS = "Advancement already in progress"


@dataclass
class AdvanceResult:
    timestamp: int
    actions: list[str] = field(default_factory=list)


def _symbols(round_: PreviewRound | LiveRound) -> str:
    return ", ".join(round_.token_symbols)


class RoundAdvancementService:
    def __init__(
        self,
        store: RoundStoreProtocol,
        price_feed: PriceFeedProtocol,
        settlement: SettlementService,
        *,
        clock: Callable[[], int] = now_ms,
        tokens_per_round: int = settings.TOKENS_PER_ROUND,
        preview_window_ms: int = settings.PREVIEW_WINDOW_MS,
        lock_ttl_ms: int = settings.ADVANCE_LOCK_TTL_MS,
    ) -> None:
        self._store = store
        self._feed = price_feed
        self._settlement = settlement
        self._clock = clock
        self._tokens_per_round = tokens_per_round
        self._preview_window_ms = preview_window_ms
        self._lock_ttl_ms = lock_ttl_ms

    async def advance(self) -> AdvanceResult:
        result = AdvanceResult(timestamp=self._clock())
        lock = await self._store.acquire_advance_lock(self._lock_ttl_ms)
        if lock is None:
            logger.info("advance skipped: lock held by another caller")
            result.actions.append(ADVANCEMENT_IN_PROGRESS)
            return result

        try:
            await self._settle_expired(result.actions)
            await self._create_preview(result.actions)
            await self._heal_gap(result.actions)
            await self._cold_start(result.actions)
        finally:
            await self._store.release_advance_lock(lock)

        for action in result.actions:
            logger.info("advance: %s", action)
        return result

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    async def _settle_expired(self, actions: list[str]) -> None:
        live = await self._store.get_live_round()
        if live is None or not has_expired(live, self._clock()):
            return

        outcome = await self._settlement.settle_live_round(live)
        if outcome is None:
            actions.append(f"Round {live.id} was already settled")
        else:
            actions.extend(outcome.describe())

        if await self._store.get_next_round() is not None:
            await self._promote_preview(actions)
        else:
            round_ = await self._start_fresh_round()
            actions.append(f"Started new live round with tokens: {_symbols(round_)}")

    async def _create_preview(self, actions: list[str]) -> None:
        live = await self._store.get_live_round()
        if live is None or await self._store.get_next_round() is not None:
            return
        if not should_create_preview(live, self._clock(), self._preview_window_ms):
            return
        tokens = await self._feed.discover_tokens(self._tokens_per_round)
        preview = await self._store.create_next_round(tokens)
        actions.append(f"Created next round preview with tokens: {_symbols(preview)}")

    async def _heal_gap(self, actions: list[str]) -> None:
        if await self._store.get_live_round() is not None:
            return
        if await self._store.get_next_round() is None:
            return
        await self._promote_preview(actions)

    async def _cold_start(self, actions: list[str]) -> None:
        if await self._store.get_live_round() is not None:
            return
        if await self._store.get_next_round() is not None:
            return
        round_ = await self._start_fresh_round()
        actions.append(f"Started initial round with tokens: {_symbols(round_)}")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _promote_preview(self, actions: list[str]) -> None:
        preview = await self._store.get_next_round()
        if preview is None:
            return
        start_prices = await snapshot_prices(self._feed, list(preview.tokens))
        promoted = await self._store.promote_next_round_to_live(start_prices)
        if promoted is not None:
            actions.append(f"Promoted next round to live with tokens: {_symbols(promoted)}")

    async def _start_fresh_round(self) -> LiveRound:
        tokens = await self._feed.discover_tokens(self._tokens_per_round)
        start_prices = await snapshot_prices(self._feed, tokens)
        return await self._store.start_new_live_round(tokens, start_prices)
