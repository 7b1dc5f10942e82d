"""RoundStore — concrete implementation of RoundStoreProtocol over a KeyValueBackend.

Key layout (prefix from settings.KEY_PREFIX):
  {p}:live_round_id     pointer to the live round
  {p}:next_round_id     pointer to the preview round
  {p}:round:{id}        full round record (stakes embedded)
  {p}:leaderboard       {wallet: entry}
  {p}:activity_feed     most-recent-first ring buffer of stakes
  {p}:round_history     most-recent-first settlement records
  {p}:advance_lock      advisory lock for the advancement procedure

There are no cross-key transactions. Each mutation is kept to one atomic
per-key step (update / compare_and_delete) and pointer writes come last, so
an interrupted sequence leaves at worst an orphaned record, never a pointer
to a half-written round.
"""

import json
import logging
import uuid
from collections.abc import Callable

from config.settings import settings
from src.dd_common.datetime_utils import now_ms
from src.dd_common.id_generator import generate_round_id, generate_stake_id
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
from src.dd_round.domain.repository import KeyValueBackend
from src.dd_round.domain.window import is_staking_open
from src.dd_round.infrastructure.codec import (
    decode_round,
    encode_round,
    history_entry_from_dict,
    history_entry_to_dict,
    leaderboard_entry_from_dict,
    leaderboard_entry_to_dict,
    stake_from_dict,
    stake_to_dict,
)
from src.dd_settlement.domain.settlement import calculate_payouts

logger = logging.getLogger("dd.round")


class RoundStore:
    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        clock: Callable[[], int] = now_ms,
        key_prefix: str = settings.KEY_PREFIX,
        round_duration_ms: int = settings.ROUND_DURATION_MS,
        staking_window_ms: int = settings.STAKING_WINDOW_MS,
        activity_feed_size: int = settings.ACTIVITY_FEED_SIZE,
        history_size: int = settings.HISTORY_SIZE,
        fee_rate: float = settings.FEE_RATE,
    ) -> None:
        self._kv = backend
        self._clock = clock
        self._prefix = key_prefix
        self._round_duration_ms = round_duration_ms
        self._staking_window_ms = staking_window_ms
        self._activity_feed_size = activity_feed_size
        self._history_size = history_size
        self._fee_rate = fee_rate

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    @property
    def _live_key(self) -> str:
        return f"{self._prefix}:live_round_id"

    @property
    def _next_key(self) -> str:
        return f"{self._prefix}:next_round_id"

    def _round_key(self, round_id: str) -> str:
        return f"{self._prefix}:round:{round_id}"

    @property
    def _leaderboard_key(self) -> str:
        return f"{self._prefix}:leaderboard"

    @property
    def _activity_key(self) -> str:
        return f"{self._prefix}:activity_feed"

    @property
    def _history_key(self) -> str:
        return f"{self._prefix}:round_history"

    @property
    def _lock_key(self) -> str:
        return f"{self._prefix}:advance_lock"

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_round(self, round_id: str) -> Round | None:
        raw = await self._kv.get(self._round_key(round_id))
        return decode_round(raw) if raw else None

    async def get_live_round(self) -> LiveRound | None:
        round_id = await self._kv.get(self._live_key)
        if not round_id:
            return None
        round_ = await self.get_round(round_id)
        # A pointer to a non-live record means a settle landed between our
        # two reads; treat as "no live round".
        return round_ if isinstance(round_, LiveRound) else None

    async def get_next_round(self) -> PreviewRound | None:
        round_id = await self._kv.get(self._next_key)
        if not round_id:
            return None
        round_ = await self.get_round(round_id)
        return round_ if isinstance(round_, PreviewRound) else None

    # ------------------------------------------------------------------ #
    # Lifecycle transitions
    # ------------------------------------------------------------------ #

    async def create_next_round(self, tokens: list[Token]) -> PreviewRound:
        """Create a preview round and point "next" at it.

        Overwrites an existing next pointer; callers check first.
        """
        round_ = PreviewRound(id=generate_round_id(), tokens=tuple(tokens))
        await self._kv.set(self._round_key(round_.id), encode_round(round_))
        await self._kv.set(self._next_key, round_.id)
        logger.info("created preview round %s tokens=%s", round_.id, round_.token_symbols)
        return round_

    async def promote_next_round_to_live(
        self, start_prices: dict[str, float]
    ) -> LiveRound | None:
        next_id = await self._kv.get(self._next_key)
        if not next_id:
            return None

        now = self._clock()

        def _promote(raw: str | None) -> str | None:
            if raw is None:
                return None
            current = decode_round(raw)
            if not isinstance(current, PreviewRound):
                return None
            return encode_round(
                current.promote(
                    now, start_prices, self._round_duration_ms, self._staking_window_ms
                )
            )

        # The result comes from what was committed: ``update`` may run the
        # closure more than once before a write sticks.
        written = await self._kv.update(self._round_key(next_id), _promote)
        if written is None:
            return None
        promoted = decode_round(written)
        assert isinstance(promoted, LiveRound)

        await self._kv.set(self._live_key, promoted.id)
        await self._kv.compare_and_delete(self._next_key, promoted.id)
        logger.info("promoted round %s to live (ends %d)", promoted.id, promoted.end_time)
        return promoted

    async def start_new_live_round(
        self, tokens: list[Token], start_prices: dict[str, float]
    ) -> LiveRound:
        """Create a live round directly, skipping preview."""
        now = self._clock()
        round_ = LiveRound(
            id=generate_round_id(),
            tokens=tuple(tokens),
            start_time=now,
            end_time=now + self._round_duration_ms,
            staking_closes_at=now + self._staking_window_ms,
            start_prices=dict(start_prices),
        )
        await self._kv.set(self._round_key(round_.id), encode_round(round_))
        await self._kv.set(self._live_key, round_.id)
        logger.info("started live round %s tokens=%s", round_.id, round_.token_symbols)
        return round_

    async def end_round(
        self,
        end_prices: dict[str, float],
        winner: str,
        *,
        round_id: str | None = None,
    ) -> SettledRound | None:
        """Settle the current live round. Exactly once per round.

        The live→settled flip is an atomic update on the round record, so of
        two concurrent callers only one gets a SettledRound back. With
        ``round_id`` the call settles nothing unless that round is still the
        live one: prices and winner computed for one round never land on
        its successor.
        """
        live_id = await self._kv.get(self._live_key)
        if not live_id:
            return None
        if round_id is not None and live_id != round_id:
            logger.info("round %s is no longer live (live is %s)", round_id, live_id)
            return None

        def _settle(raw: str | None) -> str | None:
            if raw is None:
                return None
            current = decode_round(raw)
            if not isinstance(current, LiveRound):
                return None
            return encode_round(current.settle(end_prices, winner))

        written = await self._kv.update(self._round_key(live_id), _settle)
        await self._kv.compare_and_delete(self._live_key, live_id)
        if written is None:
            return None
        settled = decode_round(written)
        assert isinstance(settled, SettledRound)
        logger.info("settled round %s winner=%s", settled.id, winner)
        return settled

    # ------------------------------------------------------------------ #
    # Stakes
    # ------------------------------------------------------------------ #

    async def _resolve_stake_target(self, round_id: str | None, now: int) -> Round | None:
        if round_id:
            return await self.get_round(round_id)
        next_round = await self.get_next_round()
        if next_round is not None and is_staking_open(next_round, now):
            return next_round
        return await self.get_live_round()

    async def add_stake(
        self,
        wallet: str,
        token: str,
        amount: float,
        tx_signature: str,
        round_id: str | None = None,
    ) -> Stake | None:
        """Append a stake to the target round.

        Target: explicit id, else next-if-open, else live. Returns None when
        no eligible round accepts it; that is "betting closed", not a fault.
        """
        now = self._clock()
        target = await self._resolve_stake_target(round_id, now)
        if target is None or not is_staking_open(target, now):
            return None

        stake = Stake(
            id=generate_stake_id(),
            wallet=wallet,
            token=token,
            amount=amount,
            timestamp=now,
            tx_signature=tx_signature,
            round_id=target.id,
        )

        def _append(raw: str | None) -> str | None:
            if raw is None:
                return None
            current = decode_round(raw)
            # Re-check against the freshly read record: it may have been
            # promoted or settled since we resolved the target.
            if not is_staking_open(current, now):
                return None
            current.stakes.append(stake)
            return encode_round(current)

        if await self._kv.update(self._round_key(target.id), _append) is None:
            return None

        def _push_activity(raw: str | None) -> str:
            feed = json.loads(raw) if raw else []
            feed.insert(0, stake_to_dict(stake))
            return json.dumps(feed[: self._activity_feed_size])

        await self._kv.update(self._activity_key, _push_activity)
        return stake

    async def get_bet_counts_by_token(self, round_id: str | None = None) -> dict[str, int]:
        round_ = await self.get_round(round_id) if round_id else await self.get_live_round()
        if round_ is None:
            return {}
        return round_.bet_counts_by_token()

    async def get_winners(self, round_id: str) -> list[Stake]:
        round_ = await self.get_round(round_id)
        if not isinstance(round_, SettledRound):
            return []
        return round_.winning_stakes()

    async def calculate_payouts(self, round_id: str) -> list[Payout]:
        round_ = await self.get_round(round_id)
        if not isinstance(round_, SettledRound):
            return []
        return calculate_payouts(round_, self._fee_rate)

    # ------------------------------------------------------------------ #
    # Leaderboard / activity
    # ------------------------------------------------------------------ #

    async def update_leaderboard(self, wallet: str, amount: float) -> None:
        def _credit(raw: str | None) -> str:
            board = json.loads(raw) if raw else {}
            entry = (
                leaderboard_entry_from_dict(board[wallet])
                if wallet in board
                else LeaderboardEntry(wallet=wallet)
            )
            entry.total_winnings += amount
            entry.win_count += 1
            board[wallet] = leaderboard_entry_to_dict(entry)
            return json.dumps(board)

        await self._kv.update(self._leaderboard_key, _credit)

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        raw = await self._kv.get(self._leaderboard_key)
        if not raw:
            return []
        entries = [leaderboard_entry_from_dict(e) for e in json.loads(raw).values()]
        entries.sort(key=lambda e: e.total_winnings, reverse=True)
        return entries[:limit]

    async def get_activity_feed(self, limit: int = 10) -> list[Stake]:
        raw = await self._kv.get(self._activity_key)
        if not raw:
            return []
        return [stake_from_dict(s) for s in json.loads(raw)[:limit]]

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #

    async def save_round_to_history(self, entry: RoundHistoryEntry) -> bool:
        """Prepend a settlement record. Returns False if the round is already recorded."""
        def _prepend(raw: str | None) -> str | None:
            history = json.loads(raw) if raw else []
            if any(h["round"]["id"] == entry.round.id for h in history):
                return None
            history.insert(0, history_entry_to_dict(entry))
            return json.dumps(history[: self._history_size])

        if await self._kv.update(self._history_key, _prepend) is None:
            logger.warning("history already holds round %s; not re-recorded", entry.round.id)
            return False
        return True

    async def get_round_history(self, limit: int = 20) -> list[RoundHistoryEntry]:
        raw = await self._kv.get(self._history_key)
        if not raw:
            return []
        return [history_entry_from_dict(h) for h in json.loads(raw)[:limit]]

    # ------------------------------------------------------------------ #
    # Advisory lock
    # ------------------------------------------------------------------ #

    async def acquire_advance_lock(self, ttl_ms: int) -> str | None:
        token = uuid.uuid4().hex
        if await self._kv.set_if_absent(self._lock_key, token, ttl_ms):
            return token
        return None

    async def release_advance_lock(self, token: str) -> None:
        await self._kv.compare_and_delete(self._lock_key, token)
