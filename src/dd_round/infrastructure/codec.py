"""JSON codec for persisted records.

Records are stored as JSON strings. The ``status`` key selects the round
variant on decode; ``total_pool`` is written for readers of the raw store
but ignored on decode (it is always re-derived from the stakes).
"""

import json
from typing import Any

from src.dd_common.enums import RoundStatus
from src.dd_round.domain.models import (
    LeaderboardEntry,
    LiveRound,
    Payout,
    PreviewRound,
    PriceChange,
    Round,
    RoundHistoryEntry,
    SettledRound,
    Stake,
    Token,
)

# ---------------------------------------------------------------------------
# Token / Stake
# ---------------------------------------------------------------------------


def token_to_dict(token: Token) -> dict[str, Any]:
    return {
        "id": token.id,
        "symbol": token.symbol,
        "name": token.name,
        "image": token.image,
        "color": token.color,
        "address": token.address,
    }


def token_from_dict(data: dict[str, Any]) -> Token:
    return Token(
        id=data["id"],
        symbol=data["symbol"],
        name=data["name"],
        image=data.get("image", ""),
        color=data.get("color", ""),
        address=data.get("address"),
    )


def stake_to_dict(stake: Stake) -> dict[str, Any]:
    return {
        "id": stake.id,
        "wallet": stake.wallet,
        "token": stake.token,
        "amount": stake.amount,
        "timestamp": stake.timestamp,
        "tx_signature": stake.tx_signature,
        "round_id": stake.round_id,
    }


def stake_from_dict(data: dict[str, Any]) -> Stake:
    return Stake(
        id=data["id"],
        wallet=data["wallet"],
        token=data["token"],
        amount=float(data["amount"]),
        timestamp=int(data["timestamp"]),
        tx_signature=data["tx_signature"],
        round_id=data["round_id"],
    )


# ---------------------------------------------------------------------------
# Round
# ---------------------------------------------------------------------------


def round_to_dict(round_: Round) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": round_.id,
        "status": round_.status.value,
        "tokens": [token_to_dict(t) for t in round_.tokens],
        "stakes": [stake_to_dict(s) for s in round_.stakes],
        "total_pool": round_.total_pool,
    }
    if isinstance(round_, (LiveRound, SettledRound)):
        data["start_time"] = round_.start_time
        data["end_time"] = round_.end_time
        data["staking_closes_at"] = round_.staking_closes_at
        data["start_prices"] = dict(round_.start_prices)
    if isinstance(round_, SettledRound):
        data["end_prices"] = dict(round_.end_prices)
        data["winner"] = round_.winner
    return data


def round_from_dict(data: dict[str, Any]) -> Round:
    status = RoundStatus(data["status"])
    common: dict[str, Any] = {
        "id": data["id"],
        "tokens": tuple(token_from_dict(t) for t in data["tokens"]),
        "stakes": [stake_from_dict(s) for s in data.get("stakes", [])],
    }
    if status is RoundStatus.PREVIEW:
        return PreviewRound(**common)

    timed = {
        "start_time": int(data["start_time"]),
        "end_time": int(data["end_time"]),
        "staking_closes_at": int(data["staking_closes_at"]),
        "start_prices": {k: float(v) for k, v in data["start_prices"].items()},
    }
    if status is RoundStatus.LIVE:
        return LiveRound(**common, **timed)
    return SettledRound(
        **common,
        **timed,
        end_prices={k: float(v) for k, v in data["end_prices"].items()},
        winner=data["winner"],
    )


def encode_round(round_: Round) -> str:
    return json.dumps(round_to_dict(round_))


def decode_round(raw: str) -> Round:
    return round_from_dict(json.loads(raw))


# ---------------------------------------------------------------------------
# Leaderboard / history
# ---------------------------------------------------------------------------


def leaderboard_entry_to_dict(entry: LeaderboardEntry) -> dict[str, Any]:
    return {
        "wallet": entry.wallet,
        "total_winnings": entry.total_winnings,
        "win_count": entry.win_count,
    }


def leaderboard_entry_from_dict(data: dict[str, Any]) -> LeaderboardEntry:
    return LeaderboardEntry(
        wallet=data["wallet"],
        total_winnings=float(data["total_winnings"]),
        win_count=int(data["win_count"]),
    )


def payout_to_dict(payout: Payout) -> dict[str, Any]:
    return {
        "wallet": payout.wallet,
        "amount": payout.amount,
        "bet_amount": payout.bet_amount,
        "tx_signature": payout.tx_signature,
    }


def payout_from_dict(data: dict[str, Any]) -> Payout:
    return Payout(
        wallet=data["wallet"],
        amount=float(data["amount"]),
        bet_amount=float(data["bet_amount"]),
        tx_signature=data.get("tx_signature"),
    )


def price_change_to_dict(pc: PriceChange) -> dict[str, Any]:
    return {
        "symbol": pc.symbol,
        "start_price": pc.start_price,
        "end_price": pc.end_price,
        "change": pc.change,
    }


def price_change_from_dict(data: dict[str, Any]) -> PriceChange:
    return PriceChange(
        symbol=data["symbol"],
        start_price=float(data["start_price"]),
        end_price=float(data["end_price"]),
        change=float(data["change"]),
    )


def history_entry_to_dict(entry: RoundHistoryEntry) -> dict[str, Any]:
    return {
        "round": round_to_dict(entry.round),
        "payouts": [payout_to_dict(p) for p in entry.payouts],
        "price_changes": [price_change_to_dict(pc) for pc in entry.price_changes],
        "settled_at": entry.settled_at,
    }


def history_entry_from_dict(data: dict[str, Any]) -> RoundHistoryEntry:
    round_ = round_from_dict(data["round"])
    if not isinstance(round_, SettledRound):
        raise ValueError(f"history entry holds a non-settled round: {round_.id}")
    return RoundHistoryEntry(
        round=round_,
        payouts=[payout_from_dict(p) for p in data["payouts"]],
        price_changes=[price_change_from_dict(pc) for pc in data["price_changes"]],
        settled_at=int(data["settled_at"]),
    )
