from src.dd_common.errors import InvalidTokenError
from src.dd_round.domain.models import Round


def check_token_in_round(round_: Round, symbol: str) -> None:
    if not round_.has_token(symbol):
        raise InvalidTokenError()
