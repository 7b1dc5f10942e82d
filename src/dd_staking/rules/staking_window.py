from src.dd_common.errors import StakingClosedError
from src.dd_round.domain.models import Round
from src.dd_round.domain.window import is_staking_open


def check_staking_open(round_: Round, now: int) -> None:
    if not is_staking_open(round_, now):
        raise StakingClosedError()
