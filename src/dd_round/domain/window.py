"""Clock/window policy — pure functions over a round and a timestamp.

Staking on a live round closes well before it ends so nobody can stake
after the price move is already visible. A preview round has no prices
yet, so it accepts stakes at any time.
"""

from dataclasses import dataclass

from config.settings import settings
from src.dd_common.enums import BettingStatus, BettingTarget
from src.dd_round.domain.models import LiveRound, PreviewRound, Round

ROUND_DURATION_MS: int = settings.ROUND_DURATION_MS
STAKING_WINDOW_MS: int = settings.STAKING_WINDOW_MS
PREVIEW_WINDOW_MS: int = settings.PREVIEW_WINDOW_MS


def is_staking_open(round_: Round, now: int) -> bool:
    if isinstance(round_, PreviewRound):
        return True
    if isinstance(round_, LiveRound):
        return now < round_.staking_closes_at
    return False


def has_expired(round_: LiveRound, now: int) -> bool:
    return now >= round_.end_time


def should_create_preview(
    live: LiveRound, now: int, preview_window_ms: int = PREVIEW_WINDOW_MS
) -> bool:
    """True inside the last ``preview_window_ms`` of a live round that has not ended."""
    remaining = live.end_time - now
    return 0 < remaining <= preview_window_ms


def next_round_staking_ends_in(
    live: LiveRound | None, now: int, staking_window_ms: int = STAKING_WINDOW_MS
) -> int | None:
    """Estimated ms until staking on the preview round closes.

    The preview goes live when the current live round ends and then stays
    open for one staking window. Unknown without a live round.
    """
    if live is None:
        return None
    return (live.end_time - now) + staking_window_ms


@dataclass(frozen=True)
class BettingState:
    status: BettingStatus
    target: BettingTarget | None
    ends_in: int | None
    is_live_round_open: bool
    is_next_round_open: bool


def resolve_betting_state(
    live: LiveRound | None,
    preview: PreviewRound | None,
    now: int,
    staking_window_ms: int = STAKING_WINDOW_MS,
) -> BettingState:
    """Which round a stake placed right now would land in, and for how long.

    An open preview wins over an open live round.
    """
    live_open = live is not None and is_staking_open(live, now)
    next_open = preview is not None and is_staking_open(preview, now)

    if next_open:
        status, target = BettingStatus.OPEN, BettingTarget.NEXT
        ends_in = next_round_staking_ends_in(live, now, staking_window_ms)
    elif live is not None and live_open:
        status, target = BettingStatus.OPEN, BettingTarget.LIVE
        ends_in = live.staking_closes_at - now
    elif live is not None:
        status, target, ends_in = BettingStatus.LOCKED, None, None
    else:
        status, target, ends_in = BettingStatus.NONE, None, None

    return BettingState(
        status=status,
        target=target,
        ends_in=ends_in,
        is_live_round_open=live_open,
        is_next_round_open=next_open,
    )
