# src/dd_admin/application/schemas.py
from pydantic import BaseModel

from src.dd_payout.domain.models import PayoutBatchResult
from src.dd_round.application.schemas import (
    PayoutOut,
    PriceChangeOut,
    RoundHistoryEntryOut,
    RoundOut,
)


class StartRoundResponse(BaseModel):
    round: RoundOut
    message: str


class PayoutSummaryOut(BaseModel):
    total_paid: float
    success_count: int
    failed_count: int

    @classmethod
    def from_batch(cls, batch: PayoutBatchResult) -> "PayoutSummaryOut":
        return cls(
            total_paid=batch.total_paid,
            success_count=batch.success_count,
            failed_count=batch.failed_count,
        )


class EndRoundResponse(BaseModel):
    round: RoundOut
    refunded: bool
    reason: str | None = None
    winner: str
    changes: list[PriceChangeOut]
    payouts: list[PayoutOut]
    payout_result: PayoutSummaryOut | None
    auto_payout_enabled: bool
    message: str


class HistoryResponse(BaseModel):
    history: list[RoundHistoryEntryOut]
    count: int


class PayoutStatusResponse(BaseModel):
    payout_configured: bool
    escrow_wallet: str | None
    escrow_balance: float | None
    rpc_url: str
