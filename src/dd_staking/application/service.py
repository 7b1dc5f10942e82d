"""StakeAdmissionService — validate a stake request, then record it.

Validation order is part of the contract (callers see the first failure):
  1. wallet format
  2. target round resolved and present
  3. round open for staking
  4. token belongs to the round
  5. amount within [MIN_STAKE, MAX_STAKE]
  6. tx reference present and long enough
"""

import logging
from collections.abc import Callable

from config.settings import settings
from src.dd_common.datetime_utils import now_ms
from src.dd_common.enums import RoundStatus
from src.dd_common.errors import NoOpenRoundError, RoundNotFoundError, StakeNotRecordedError
from src.dd_common.sol import shorten_address
from src.dd_round.application.schemas import StakeOut
from src.dd_round.domain.models import Round
from src.dd_round.domain.repository import RoundStoreProtocol
from src.dd_round.domain.window import is_staking_open
from src.dd_staking.application.schemas import PlaceStakeRequest, PlaceStakeResponse
from src.dd_staking.rules.stake_amount import check_stake_amount
from src.dd_staking.rules.staking_window import check_staking_open
from src.dd_staking.rules.token_membership import check_token_in_round
from src.dd_staking.rules.tx_reference import check_tx_reference
from src.dd_staking.rules.wallet_format import check_wallet_format

logger = logging.getLogger("dd.staking")


class StakeAdmissionService:
    def __init__(
        self,
        store: RoundStoreProtocol,
        *,
        clock: Callable[[], int] = now_ms,
        min_stake: float = settings.MIN_STAKE,
        max_stake: float = settings.MAX_STAKE,
    ) -> None:
        self._store = store
        self._clock = clock
        self._min_stake = min_stake
        self._max_stake = max_stake

    async def _resolve_target(self, round_id: str | None, now: int) -> Round:
        if round_id:
            round_ = await self._store.get_round(round_id)
            if round_ is None:
                raise RoundNotFoundError(round_id, http_status=400)
            return round_

        preview = await self._store.get_next_round()
        if preview is not None and is_staking_open(preview, now):
            return preview
        live = await self._store.get_live_round()
        if live is not None and is_staking_open(live, now):
            return live
        raise NoOpenRoundError()

    async def place_stake(self, req: PlaceStakeRequest) -> PlaceStakeResponse:
        check_wallet_format(req.wallet)
        now = self._clock()
        target = await self._resolve_target(req.round_id, now)
        check_staking_open(target, now)
        check_token_in_round(target, req.token)
        check_stake_amount(req.amount, self._min_stake, self._max_stake)
        check_tx_reference(req.tx_signature)

        stake = await self._store.add_stake(
            req.wallet, req.token, req.amount, req.tx_signature, target.id
        )
        if stake is None:
            # Window closed (or the round moved on) between check and write
            raise StakeNotRecordedError()

        which = "next" if target.status is RoundStatus.PREVIEW else "current"
        logger.info(
            "stake %s: %.4f SOL on %s by %s (round %s)",
            stake.id,
            stake.amount,
            stake.token,
            shorten_address(stake.wallet),
            target.id,
        )
        return PlaceStakeResponse(
            stake=StakeOut.from_domain(stake),
            round_id=target.id,
            round_status=target.status.value,
            message=f"Bet placed on {req.token} for {which} round",
        )
