# src/dd_staking/application/schemas.py
from pydantic import BaseModel

from src.dd_round.application.schemas import StakeOut


class PlaceStakeRequest(BaseModel):
    # Format checks live in the rule chain so errors carry the domain codes
    wallet: str
    token: str
    amount: float
    tx_signature: str | None = None
    round_id: str | None = None


class PlaceStakeResponse(BaseModel):
    stake: StakeOut
    round_id: str
    round_status: str
    message: str
