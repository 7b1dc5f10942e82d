"""Domain models for dd_round — pure dataclasses.

A round is one of three variants. Only ``LiveRound`` and ``SettledRound``
carry timers and start prices; only ``SettledRound`` carries end prices and
a winner. Transitions return a new variant instead of flipping a status
field, so a preview round can never be observed with half-set timers.
"""

from dataclasses import dataclass, field
from typing import ClassVar

from src.dd_common.enums import REFUNDED, RoundStatus


@dataclass(frozen=True)
class Token:
    """A tradable token selected into a round. Immutable once selected."""

    id: str
    symbol: str
    name: str
    image: str
    color: str
    address: str | None = None


@dataclass(frozen=True)
class Stake:
    id: str
    wallet: str
    token: str  # token symbol
    amount: float
    timestamp: int
    tx_signature: str
    round_id: str


@dataclass(kw_only=True)
class _RoundBase:
    id: str
    tokens: tuple[Token, ...]
    stakes: list[Stake] = field(default_factory=list)

    status: ClassVar[RoundStatus]

    @property
    def total_pool(self) -> float:
        """Always derived from the stake list, never stored independently."""
        return sum(s.amount for s in self.stakes)

    @property
    def token_symbols(self) -> list[str]:
        return [t.symbol for t in self.tokens]

    def has_token(self, symbol: str) -> bool:
        return any(t.symbol == symbol for t in self.tokens)

    def distinct_wallets(self) -> int:
        return len({s.wallet for s in self.stakes})

    def bet_counts_by_token(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for s in self.stakes:
            counts[s.token] = counts.get(s.token, 0) + 1
        return counts


@dataclass(kw_only=True)
class PreviewRound(_RoundBase):
    """Upcoming round: token set visible, no clock, no prices."""

    status: ClassVar[RoundStatus] = RoundStatus.PREVIEW

    def promote(
        self,
        now: int,
        start_prices: dict[str, float],
        round_duration_ms: int,
        staking_window_ms: int,
    ) -> "LiveRound":
        return LiveRound(
            id=self.id,
            tokens=self.tokens,
            stakes=list(self.stakes),
            start_time=now,
            end_time=now + round_duration_ms,
            staking_closes_at=now + staking_window_ms,
            start_prices=dict(start_prices),
        )


@dataclass(kw_only=True)
class LiveRound(_RoundBase):
    start_time: int
    end_time: int
    staking_closes_at: int
    start_prices: dict[str, float]

    status: ClassVar[RoundStatus] = RoundStatus.LIVE

    def settle(self, end_prices: dict[str, float], winner: str) -> "SettledRound":
        return SettledRound(
            id=self.id,
            tokens=self.tokens,
            stakes=list(self.stakes),
            start_time=self.start_time,
            end_time=self.end_time,
            staking_closes_at=self.staking_closes_at,
            start_prices=dict(self.start_prices),
            end_prices=dict(end_prices),
            winner=winner,
        )


@dataclass(kw_only=True)
class SettledRound(_RoundBase):
    start_time: int
    end_time: int
    staking_closes_at: int
    start_prices: dict[str, float]
    end_prices: dict[str, float]
    winner: str

    status: ClassVar[RoundStatus] = RoundStatus.SETTLED

    @property
    def refunded(self) -> bool:
        return self.winner == REFUNDED

    def winning_stakes(self) -> list[Stake]:
        if self.refunded:
            return []
        return [s for s in self.stakes if s.token == self.winner]


Round = PreviewRound | LiveRound | SettledRound


@dataclass
class LeaderboardEntry:
    wallet: str
    total_winnings: float = 0.0
    win_count: int = 0


@dataclass(frozen=True)
class Payout:
    """One credit owed to a wallet. For refunds ``amount == bet_amount``."""

    wallet: str
    amount: float
    bet_amount: float
    tx_signature: str | None = None


@dataclass(frozen=True)
class PriceChange:
    symbol: str
    start_price: float
    end_price: float
    change: float  # percent


@dataclass(frozen=True)
class RoundHistoryEntry:
    """Write-once settlement record."""

    round: SettledRound
    payouts: list[Payout]
    price_changes: list[PriceChange]
    settled_at: int
