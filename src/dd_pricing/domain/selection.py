"""Random token selection for a new round."""

import logging
import random

from src.dd_pricing.domain.models import MarketToken
from src.dd_round.domain.models import Token

logger = logging.getLogger("dd.pricing")

TOKEN_COLORS = [
    "#F72585",  # pink
    "#00F5D4",  # cyan
    "#9D4EDD",  # purple
    "#FF6D00",  # orange
    "#4CC9F0",  # light blue
    "#7209B7",  # deep purple
    "#F77F00",  # amber
    "#06D6A0",  # teal
    "#EF476F",  # coral
    "#118AB2",  # ocean blue
]

MIN_VOLUME = 1000.0
MIN_ABS_CHANGE_24H = 0.01  # a flat 0.00% token is a dull pick


def is_selectable(token: MarketToken) -> bool:
    return (
        token.total_volume > MIN_VOLUME
        and token.current_price > 0
        and abs(token.price_change_24h) > MIN_ABS_CHANGE_24H
    )


def select_random_tokens(
    candidates: list[MarketToken],
    count: int,
    fallback: list[Token],
    rng: random.Random | None = None,
) -> list[Token]:
    """Pick ``count`` selectable candidates at random; ``fallback`` if too few."""
    valid = [t for t in candidates if is_selectable(t)]
    logger.info("token selection: %d candidates, %d selectable", len(candidates), len(valid))
    if len(valid) < count:
        logger.warning("only %d selectable tokens, using fallback list", len(valid))
        return list(fallback[:count])

    picked = (rng or random).sample(valid, count)
    return [
        Token(
            id=t.id,
            symbol=t.symbol.upper(),
            name=t.name,
            image=t.image,
            color=TOKEN_COLORS[i % len(TOKEN_COLORS)],
            address=t.address,
        )
        for i, t in enumerate(picked)
    ]
