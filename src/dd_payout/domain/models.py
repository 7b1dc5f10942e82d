"""Domain models for dd_payout — pure dataclasses."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TransferReceipt:
    """Outcome of one transport send."""

    success: bool
    reference: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class PayoutResult:
    wallet: str
    amount: float
    success: bool
    signature: str | None = None
    error: str | None = None


@dataclass
class PayoutBatchResult:
    """Per-recipient results, in the same order as the requested payouts."""

    results: list[PayoutResult] = field(default_factory=list)
    total_paid: float = 0.0

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success_count(self) -> int:
        return len(self.results) - self.failed_count

    @property
    def success(self) -> bool:
        return self.failed_count == 0
