# src/dd_round/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

``KeyValueBackend`` is the storage engine seam (in-memory or Redis, chosen
once at startup). ``RoundStoreProtocol`` is what the application layer
talks to. Unit tests inject mocks that conform to these Protocols.
"""

from collections.abc import Callable
from typing import Protocol

from src.dd_round.domain.models import (
    LeaderboardEntry,
    LiveRound,
    Payout,
    PreviewRound,
    Round,
    RoundHistoryEntry,
    SettledRound,
    Stake,
    Token,
)


class KeyValueBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool: ...

    async def compare_and_delete(self, key: str, expected: str) -> bool: ...

    async def update(
        self, key: str, fn: Callable[[str | None], str | None]
    ) -> str | None:
        """Atomic read-modify-write. ``fn`` returning None aborts without writing."""
        ...

    async def ping(self) -> None: ...


class RoundStoreProtocol(Protocol):
    async def get_live_round(self) -> LiveRound | None: ...

    async def get_next_round(self) -> PreviewRound | None: ...

    async def get_round(self, round_id: str) -> Round | None: ...

    async def create_next_round(self, tokens: list[Token]) -> PreviewRound: ...

    async def promote_next_round_to_live(
        self, start_prices: dict[str, float]
    ) -> LiveRound | None: ...

    async def start_new_live_round(
        self, tokens: list[Token], start_prices: dict[str, float]
    ) -> LiveRound: ...

    async def end_round(
        self,
        end_prices: dict[str, float],
        winner: str,
        *,
        round_id: str | None = None,
    ) -> SettledRound | None:
        """Settle the live round; with ``round_id``, only if that round is still live."""
        ...

    async def add_stake(
        self,
        wallet: str,
        token: str,
        amount: float,
        tx_signature: str,
        round_id: str | None = None,
    ) -> Stake | None: ...

    async def get_bet_counts_by_token(self, round_id: str | None = None) -> dict[str, int]: ...

    async def update_leaderboard(self, wallet: str, amount: float) -> None: ...

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]: ...

    async def get_activity_feed(self, limit: int = 10) -> list[Stake]: ...

    async def get_winners(self, round_id: str) -> list[Stake]: ...

    async def calculate_payouts(self, round_id: str) -> list[Payout]: ...

    async def save_round_to_history(self, entry: RoundHistoryEntry) -> bool: ...

    async def get_round_history(self, limit: int = 20) -> list[RoundHistoryEntry]: ...

    async def acquire_advance_lock(self, ttl_ms: int) -> str | None: ...

    async def release_advance_lock(self, token: str) -> None: ...
