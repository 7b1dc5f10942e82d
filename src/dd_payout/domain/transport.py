# src/dd_payout/domain/transport.py
"""Disbursement transport Protocol.

``pay`` never raises for a failed transfer; the failure comes back in the
receipt so one stuck recipient cannot block the rest of a batch.
"""

from typing import Protocol

from src.dd_payout.domain.models import TransferReceipt


class DisbursementTransport(Protocol):
    @property
    def is_configured(self) -> bool: ...

    @property
    def address(self) -> str | None: ...

    @property
    def rpc_url(self) -> str: ...

    async def pay(self, wallet: str, amount: float) -> TransferReceipt: ...

    async def balance(self) -> float: ...
