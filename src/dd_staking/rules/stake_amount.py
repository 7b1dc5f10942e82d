from config.settings import settings
from src.dd_common.errors import StakeAmountError

MIN_STAKE: float = settings.MIN_STAKE
MAX_STAKE: float = settings.MAX_STAKE


def check_stake_amount(
    amount: float, min_stake: float = MIN_STAKE, max_stake: float = MAX_STAKE
) -> None:
    """Raise StakeAmountError if amount is not in [min_stake, max_stake]."""
    if not (min_stake <= amount <= max_stake):
        raise StakeAmountError(min_stake, max_stake)
