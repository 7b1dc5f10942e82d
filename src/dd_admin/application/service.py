"""Admin application service — privileged round operations.

Force-ending a round runs the exact settle-and-disburse procedure the
advancement service uses on natural expiry.
"""

import logging

from config.settings import settings
from src.dd_admin.application.schemas import (
    EndRoundResponse,
    HistoryResponse,
    PayoutStatusResponse,
    PayoutSummaryOut,
    StartRoundResponse,
)
from src.dd_common.errors import (
    LiveRoundExistsError,
    NoLiveRoundError,
    RoundAlreadySettledError,
)
from src.dd_payout.domain.transport import DisbursementTransport
from src.dd_pricing.domain.feed import PriceFeedProtocol, snapshot_prices
from src.dd_round.application.schemas import (
    PayoutOut,
    PriceChangeOut,
    RoundHistoryEntryOut,
    RoundOut,
)
from src.dd_round.domain.repository import RoundStoreProtocol
from src.dd_settlement.application.service import SettlementService

logger = logging.getLogger("dd.admin")


class AdminService:
    def __init__(
        self,
        store: RoundStoreProtocol,
        price_feed: PriceFeedProtocol,
        transport: DisbursementTransport,
        settlement: SettlementService,
        *,
        tokens_per_round: int = settings.TOKENS_PER_ROUND,
        min_distinct_wallets: int = settings.MIN_DISTINCT_WALLETS,
    ) -> None:
        self._store = store
        self._feed = price_feed
        self._transport = transport
        self._settlement = settlement
        self._tokens_per_round = tokens_per_round
        self._min_wallets = min_distinct_wallets

    async def start_round(self) -> StartRoundResponse:
        if await self._store.get_live_round() is not None:
            raise LiveRoundExistsError()
        tokens = await self._feed.discover_tokens(self._tokens_per_round)
        start_prices = await snapshot_prices(self._feed, tokens)
        round_ = await self._store.start_new_live_round(tokens, start_prices)
        symbols = ", ".join(round_.token_symbols)
        logger.info("admin started round %s", round_.id)
        return StartRoundResponse(
            round=RoundOut.from_domain(round_),
            message=f"Round is now LIVE with {symbols}!",
        )

    async def end_round(self) -> EndRoundResponse:
        live = await self._store.get_live_round()
        if live is None:
            raise NoLiveRoundError()

        outcome = await self._settlement.settle_live_round(live)
        if outcome is None:
            raise RoundAlreadySettledError(live.id)
        logger.info("admin force-ended round %s", outcome.round.id)

        if outcome.refunded:
            reason = (
                f"Only {outcome.distinct_wallets} unique bettor(s) - "
                f"minimum {self._min_wallets} required"
            )
            message = (
                f"Round refunded! Only {outcome.distinct_wallets} unique bettor(s) - "
                f"need at least {self._min_wallets} to play."
            )
        else:
            reason = None
            message = f"Round ended! Winner: {outcome.winner} ({outcome.winning_change:.2f}%)"

        return EndRoundResponse(
            round=RoundOut.from_domain(outcome.round),
            refunded=outcome.refunded,
            reason=reason,
            winner=outcome.winner,
            changes=[PriceChangeOut.from_domain(pc) for pc in outcome.changes],
            payouts=[PayoutOut.from_domain(p) for p in outcome.payouts],
            payout_result=(
                PayoutSummaryOut.from_batch(outcome.payout_batch)
                if outcome.payout_batch is not None
                else None
            ),
            auto_payout_enabled=outcome.auto_payout_enabled,
            message=message,
        )

    async def get_history(self, limit: int) -> HistoryResponse:
        entries = await self._store.get_round_history(limit)
        return HistoryResponse(
            history=[RoundHistoryEntryOut.from_domain(h) for h in entries],
            count=len(entries),
        )

    async def get_payout_status(self) -> PayoutStatusResponse:
        balance: float | None = None
        if self._transport.is_configured:
            try:
                balance = await self._transport.balance()
            except Exception as e:  # noqa: BLE001 -- status report; RPC trouble shows as null balance
                logger.error("escrow balance lookup failed: %s", e)
        return PayoutStatusResponse(
            payout_configured=self._transport.is_configured,
            escrow_wallet=self._transport.address,
            escrow_balance=balance,
            rpc_url=self._transport.rpc_url,
        )
