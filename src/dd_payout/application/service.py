"""Batch payout processing.

Transfers go out one at a time with a fixed pause between sends so the
RPC node does not rate-limit the escrow wallet. A 60-second request budget
therefore covers roughly a hundred recipients.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from config.settings import settings
from src.dd_common.sol import shorten_address
from src.dd_payout.domain.models import PayoutBatchResult, PayoutResult
from src.dd_payout.domain.transport import DisbursementTransport
from src.dd_round.domain.models import Payout

logger = logging.getLogger("dd.payout")


def _fail_all(payouts: list[Payout], reason: str) -> PayoutBatchResult:
    return PayoutBatchResult(
        results=[
            PayoutResult(wallet=p.wallet, amount=p.amount, success=False, error=reason)
            for p in payouts
        ]
    )


async def process_payouts(
    transport: DisbursementTransport,
    payouts: list[Payout],
    *,
    send_delay_ms: int = settings.PAYOUT_SEND_DELAY_MS,
    min_amount: float = settings.MIN_PAYOUT_AMOUNT,
    fee_buffer: float = settings.PAYOUT_FEE_BUFFER,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PayoutBatchResult:
    if not transport.is_configured:
        logger.warning("automated payouts disabled - escrow key not set")
        return _fail_all(payouts, "Automated payouts not configured")

    total_required = sum(p.amount for p in payouts)
    try:
        escrow_balance = await transport.balance()
    except Exception as e:  # noqa: BLE001 -- settlement bookkeeping must not depend on the RPC
        logger.error("escrow balance lookup failed: %s", e)
        return _fail_all(payouts, "Escrow balance unavailable")
    if escrow_balance < total_required + len(payouts) * fee_buffer:
        logger.error(
            "insufficient escrow balance: %.6f SOL, need %.6f SOL",
            escrow_balance,
            total_required + len(payouts) * fee_buffer,
        )
        return _fail_all(payouts, "Insufficient escrow balance")

    logger.info("processing %d payouts, total %.6f SOL", len(payouts), total_required)
    batch = PayoutBatchResult()
    for payout in payouts:
        if payout.amount < min_amount:
            batch.results.append(
                PayoutResult(
                    wallet=payout.wallet,
                    amount=payout.amount,
                    success=False,
                    error=f"Amount too small (< {min_amount} SOL)",
                )
            )
            continue

        receipt = await transport.pay(payout.wallet, payout.amount)
        batch.results.append(
            PayoutResult(
                wallet=payout.wallet,
                amount=payout.amount,
                success=receipt.success,
                signature=receipt.reference,
                error=receipt.error,
            )
        )
        if receipt.success:
            batch.total_paid += payout.amount
        else:
            logger.error(
                "payout failed: %.6f SOL to %s: %s",
                payout.amount,
                shorten_address(payout.wallet),
                receipt.error,
            )

        await sleep(send_delay_ms / 1000)

    logger.info(
        "payout batch complete: %d/%d successful, %.6f SOL paid",
        batch.success_count,
        len(batch.results),
        batch.total_paid,
    )
    return batch
