"""Settlement math — pure functions, no I/O.

Winner: the token with the strictly highest percent change, scanning in the
round's token order, so ties go to the earlier token.

Payouts: each winning stake gets ``stake / winning_total * pool * (1 - fee)``.
No residual correction; the split can drift from the pool by float rounding.

Refund gate: fewer than ``min_wallets`` distinct wallets with at least one
stake means every stake is returned in full, with no fee.
"""

from config.settings import settings
from src.dd_round.domain.models import (
    LiveRound,
    Payout,
    PriceChange,
    Round,
    SettledRound,
)

FEE_RATE: float = settings.FEE_RATE
MIN_DISTINCT_WALLETS: int = settings.MIN_DISTINCT_WALLETS


def percent_change(start_price: float, end_price: float) -> float:
    """Percent move; 0 when the start price is 0 (no divide-by-zero)."""
    if start_price == 0:
        return 0.0
    return (end_price - start_price) / start_price * 100


def compute_price_changes(
    round_: LiveRound, end_prices: dict[str, float]
) -> list[PriceChange]:
    """One PriceChange per token, in the round's token order."""
    changes = []
    for token in round_.tokens:
        start = round_.start_prices.get(token.symbol, 0.0)
        end = end_prices.get(token.symbol, 0.0)
        changes.append(
            PriceChange(
                symbol=token.symbol,
                start_price=start,
                end_price=end,
                change=percent_change(start, end),
            )
        )
    return changes


def pick_winner(changes: list[PriceChange]) -> PriceChange:
    if not changes:
        raise ValueError("cannot pick a winner from an empty token list")
    best = changes[0]
    for pc in changes[1:]:
        if pc.change > best.change:  # strict: ties keep the earlier token
            best = pc
    return best


def needs_refund(round_: Round, min_wallets: int = MIN_DISTINCT_WALLETS) -> bool:
    return len(round_.stakes) > 0 and round_.distinct_wallets() < min_wallets


def refund_payouts(round_: Round) -> list[Payout]:
    return [
        Payout(wallet=s.wallet, amount=s.amount, bet_amount=s.amount)
        for s in round_.stakes
    ]


def payout_pool(total_pool: float, fee_rate: float = FEE_RATE) -> float:
    return total_pool * (1 - fee_rate)


def calculate_payouts(round_: SettledRound, fee_rate: float = FEE_RATE) -> list[Payout]:
    """Proportional split of the fee-adjusted pool across winning stakes.

    Empty when nobody staked on the winner (the pool stays undistributed)
    or when the round was refunded.
    """
    winners = round_.winning_stakes()
    if not winners:
        return []
    pool = payout_pool(round_.total_pool, fee_rate)
    winning_total = sum(s.amount for s in winners)
    return [
        Payout(
            wallet=s.wallet,
            amount=(s.amount / winning_total) * pool,
            bet_amount=s.amount,
        )
        for s in winners
    ]
