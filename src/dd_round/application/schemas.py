# src/dd_round/application/schemas.py
"""Pydantic schemas for dd_round API responses."""

from pydantic import BaseModel

from src.dd_pricing.domain.models import TokenQuote
from src.dd_round.domain.models import (
    LeaderboardEntry,
    LiveRound,
    Payout,
    PriceChange,
    Round,
    RoundHistoryEntry,
    SettledRound,
    Stake,
    Token,
)
from src.dd_round.domain.window import BettingState

# ---------------------------------------------------------------------------
# Round
# ---------------------------------------------------------------------------


class TokenOut(BaseModel):
    id: str
    symbol: str
    name: str
    image: str
    color: str
    address: str | None = None

    @classmethod
    def from_domain(cls, t: Token) -> "TokenOut":
        return cls(
            id=t.id,
            symbol=t.symbol,
            name=t.name,
            image=t.image,
            color=t.color,
            address=t.address,
        )


class StakeOut(BaseModel):
    id: str
    wallet: str
    token: str
    amount: float
    timestamp: int
    tx_signature: str
    round_id: str

    @classmethod
    def from_domain(cls, s: Stake) -> "StakeOut":
        return cls(
            id=s.id,
            wallet=s.wallet,
            token=s.token,
            amount=s.amount,
            timestamp=s.timestamp,
            tx_signature=s.tx_signature,
            round_id=s.round_id,
        )


class RoundOut(BaseModel):
    """Flat view of any round variant; fields a variant lacks are null."""

    id: str
    status: str
    tokens: list[TokenOut]
    stakes: list[StakeOut]
    total_pool: float
    start_time: int | None = None
    end_time: int | None = None
    staking_closes_at: int | None = None
    start_prices: dict[str, float] | None = None
    end_prices: dict[str, float] | None = None
    winner: str | None = None

    @classmethod
    def from_domain(cls, r: Round) -> "RoundOut":
        out = cls(
            id=r.id,
            status=r.status.value,
            tokens=[TokenOut.from_domain(t) for t in r.tokens],
            stakes=[StakeOut.from_domain(s) for s in r.stakes],
            total_pool=r.total_pool,
        )
        if isinstance(r, (LiveRound, SettledRound)):
            out.start_time = r.start_time
            out.end_time = r.end_time
            out.staking_closes_at = r.staking_closes_at
            out.start_prices = dict(r.start_prices)
        if isinstance(r, SettledRound):
            out.end_prices = dict(r.end_prices)
            out.winner = r.winner
        return out


class BettingStatusOut(BaseModel):
    status: str
    target: str | None
    ends_in: int | None
    is_live_round_betting_open: bool
    is_next_round_betting_open: bool

    @classmethod
    def from_state(cls, state: BettingState) -> "BettingStatusOut":
        return cls(
            status=state.status.value,
            target=state.target.value if state.target else None,
            ends_in=state.ends_in,
            is_live_round_betting_open=state.is_live_round_open,
            is_next_round_betting_open=state.is_next_round_open,
        )


class RoundConfigOut(BaseModel):
    round_duration: int
    betting_window: int
    preview_window: int


class CurrentRoundResponse(BaseModel):
    live_round: RoundOut | None
    next_round: RoundOut | None
    live_bet_counts: dict[str, int]
    next_bet_counts: dict[str, int]
    activity: list[StakeOut]
    betting: BettingStatusOut
    config: RoundConfigOut


# ---------------------------------------------------------------------------
# Leaderboard / prices
# ---------------------------------------------------------------------------


class LeaderboardEntryOut(BaseModel):
    wallet: str
    total_winnings: float
    win_count: int

    @classmethod
    def from_domain(cls, e: LeaderboardEntry) -> "LeaderboardEntryOut":
        return cls(wallet=e.wallet, total_winnings=e.total_winnings, win_count=e.win_count)


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntryOut]


class TokenPriceOut(BaseModel):
    symbol: str
    price: float
    change_24h: float

    @classmethod
    def from_quote(cls, q: TokenQuote) -> "TokenPriceOut":
        return cls(symbol=q.symbol, price=q.price, change_24h=q.change_24h)


class PricesResponse(BaseModel):
    prices: list[TokenPriceOut]
    timestamp: int


# ---------------------------------------------------------------------------
# Settlement records
# ---------------------------------------------------------------------------


class PayoutOut(BaseModel):
    wallet: str
    amount: float
    bet_amount: float
    tx_signature: str | None = None

    @classmethod
    def from_domain(cls, p: Payout) -> "PayoutOut":
        return cls(
            wallet=p.wallet,
            amount=p.amount,
            bet_amount=p.bet_amount,
            tx_signature=p.tx_signature,
        )


class PriceChangeOut(BaseModel):
    symbol: str
    start_price: float
    end_price: float
    change: float

    @classmethod
    def from_domain(cls, pc: PriceChange) -> "PriceChangeOut":
        return cls(
            symbol=pc.symbol,
            start_price=pc.start_price,
            end_price=pc.end_price,
            change=pc.change,
        )


class RoundHistoryEntryOut(BaseModel):
    round: RoundOut
    payouts: list[PayoutOut]
    price_changes: list[PriceChangeOut]
    settled_at: int

    @classmethod
    def from_domain(cls, h: RoundHistoryEntry) -> "RoundHistoryEntryOut":
        return cls(
            round=RoundOut.from_domain(h.round),
            payouts=[PayoutOut.from_domain(p) for p in h.payouts],
            price_changes=[PriceChangeOut.from_domain(pc) for pc in h.price_changes],
            settled_at=h.settled_at,
        )


# ---------------------------------------------------------------------------
# Periodic trigger
# ---------------------------------------------------------------------------


class AdvanceRoundResponse(BaseModel):
    success: bool
    actions: list[str]
    timestamp: int
