"""SettlementService — settle the live round, disburse, credit, record.

Used by both the advancement procedure (natural expiry) and the admin
force-end, so the two paths cannot drift apart.

Order of effects:
  1. eligibility gate: refund, or price the tokens and pick a winner
  2. end_round (the live→settled flip; exactly once per round)
  3. payouts through the transport when configured, else credit directly
  4. leaderboard credit for winnings actually paid (refunds are not winnings)
  5. one history entry per round id

A failed transfer never rolls back 2. Settlement is final; unpaid
recipients are logged for manual reconciliation.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from config.settings import settings
from src.dd_common.datetime_utils import now_ms
from src.dd_common.enums import REFUNDED
from src.dd_payout.application.service import process_payouts
from src.dd_payout.domain.models import PayoutBatchResult
from src.dd_payout.domain.transport import DisbursementTransport
from src.dd_pricing.domain.feed import PriceFeedProtocol, snapshot_prices
from src.dd_round.domain.models import (
    LiveRound,
    Payout,
    PriceChange,
    RoundHistoryEntry,
    SettledRound,
)
from src.dd_round.domain.repository import RoundStoreProtocol
from src.dd_settlement.domain.settlement import (
    calculate_payouts,
    compute_price_changes,
    needs_refund,
    pick_winner,
    refund_payouts,
)

logger = logging.getLogger("dd.settlement")


@dataclass
class SettlementOutcome:
    round: SettledRound
    refunded: bool
    winner: str
    winning_change: float | None
    changes: list[PriceChange]
    payouts: list[Payout]
    payout_batch: PayoutBatchResult | None
    auto_payout_enabled: bool
    distinct_wallets: int

    def describe(self) -> list[str]:
        """Human-readable action lines for the advancement log."""
        if self.refunded:
            lines = [
                f"Refunded round {self.round.id}: only {self.distinct_wallets} "
                f"unique bettor(s)"
            ]
        else:
            lines = [f"Ended live round. Winner: {self.winner} ({self.winning_change:.2f}%)"]

        if not self.payouts:
            lines.append("No winners this round")
        elif self.payout_batch is not None:
            batch = self.payout_batch
            lines.append(
                f"Sent {batch.success_count}/{len(batch.results)} payouts "
                f"({batch.total_paid:.4f} SOL)"
            )
            if batch.failed_count:
                lines.append(f"WARNING: {batch.failed_count} payouts failed")
        else:
            lines.append(
                f"Recorded {len(self.payouts)} payouts "
                f"(manual payout required - auto-payout not configured)"
            )
        return lines


class SettlementService:
    def __init__(
        self,
        store: RoundStoreProtocol,
        price_feed: PriceFeedProtocol,
        transport: DisbursementTransport,
        *,
        fee_rate: float = settings.FEE_RATE,
        min_distinct_wallets: int = settings.MIN_DISTINCT_WALLETS,
        clock: Callable[[], int] = now_ms,
        payout_processor=process_payouts,
    ) -> None:
        self._store = store
        self._feed = price_feed
        self._transport = transport
        self._fee_rate = fee_rate
        self._min_wallets = min_distinct_wallets
        self._clock = clock
        self._process_payouts = payout_processor

    async def settle_live_round(self, live: LiveRound) -> SettlementOutcome | None:
        """Settle ``live``. None if another caller settled it first or it is no longer live."""
        if needs_refund(live, self._min_wallets):
            settled = await self._store.end_round({}, REFUNDED, round_id=live.id)
            if settled is None:
                return None
            changes: list[PriceChange] = []
            payouts = refund_payouts(settled)
            winning_change = None
            logger.info(
                "round %s refunded: %d distinct wallet(s), %d stake(s)",
                settled.id,
                settled.distinct_wallets(),
                len(settled.stakes),
            )
        else:
            end_prices = await snapshot_prices(self._feed, list(live.tokens))
            changes = compute_price_changes(live, end_prices)
            best = pick_winner(changes)
            settled = await self._store.end_round(end_prices, best.symbol, round_id=live.id)
            if settled is None:
                return None
            payouts = calculate_payouts(settled, self._fee_rate)
            winning_change = best.change
            if not payouts:
                logger.info("round %s: nobody staked on %s; pool retained", settled.id, best.symbol)

        batch = await self._disburse(payouts, credit_leaderboard=not settled.refunded)
        recorded = self._attach_signatures(payouts, batch)

        await self._store.save_round_to_history(
            RoundHistoryEntry(
                round=settled,
                payouts=recorded,
                price_changes=changes,
                settled_at=self._clock(),
            )
        )
        return SettlementOutcome(
            round=settled,
            refunded=settled.refunded,
            winner=settled.winner,
            winning_change=winning_change,
            changes=changes,
            payouts=recorded,
            payout_batch=batch,
            auto_payout_enabled=self._transport.is_configured,
            distinct_wallets=settled.distinct_wallets(),
        )

    async def _disburse(
        self, payouts: list[Payout], *, credit_leaderboard: bool
    ) -> PayoutBatchResult | None:
        if not payouts:
            return None

        if not self._transport.is_configured:
            # Manual payout: the operator pays out of band; credit now.
            if credit_leaderboard:
                for p in payouts:
                    await self._store.update_leaderboard(p.wallet, p.amount)
            logger.warning(
                "%d payouts recorded; manual payout required (auto-payout not configured)",
                len(payouts),
            )
            return None

        batch = await self._process_payouts(self._transport, payouts)
        if credit_leaderboard:
            for result in batch.results:
                if result.success:
                    await self._store.update_leaderboard(result.wallet, result.amount)
        failed = [r for r in batch.results if not r.success]
        if failed:
            logger.error(
                "%d payouts failed and need manual reconciliation: %s",
                len(failed),
                [(r.wallet, r.amount, r.error) for r in failed],
            )
        return batch

    @staticmethod
    def _attach_signatures(
        payouts: list[Payout], batch: PayoutBatchResult | None
    ) -> list[Payout]:
        if batch is None:
            return payouts
        return [
            replace(p, tx_signature=r.signature) if r.success else p
            for p, r in zip(payouts, batch.results, strict=True)
        ]
