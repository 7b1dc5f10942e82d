"""Unit tests for dd_payout.application.service.process_payouts."""

from unittest.mock import AsyncMock

import pytest

from src.dd_payout.application.service import process_payouts
from src.dd_round.domain.models import Payout
from tests.factories import WALLET_A, WALLET_B, WALLET_C, FakeTransport


def _payouts(*amounts: float) -> list[Payout]:
    wallets = (WALLET_A, WALLET_B, WALLET_C)
    return [Payout(wallet=wallets[i], amount=a, bet_amount=a) for i, a in enumerate(amounts)]


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


class TestProcessPayouts:
    @pytest.mark.asyncio
    async def test_sends_sequentially_with_delay(self, sleep) -> None:
        transport = FakeTransport()

        batch = await process_payouts(transport, _payouts(1.0, 2.0), send_delay_ms=500, sleep=sleep)

        assert transport.sent == [(WALLET_A, 1.0), (WALLET_B, 2.0)]
        assert batch.success is True
        assert batch.total_paid == 3.0
        assert [r.signature for r in batch.results] == ["sig_1", "sig_2"]
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_unconfigured_fails_everything(self, sleep) -> None:
        transport = FakeTransport(configured=False)

        batch = await process_payouts(transport, _payouts(1.0, 2.0), sleep=sleep)

        assert batch.failed_count == 2
        assert {r.error for r in batch.results} == {"Automated payouts not configured"}
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_insufficient_balance_fails_everything(self, sleep) -> None:
        # need 3.0 + 2 * 0.001 fee buffer
        transport = FakeTransport(escrow_balance=3.001)

        batch = await process_payouts(
            transport, _payouts(1.0, 2.0), fee_buffer=0.001, sleep=sleep
        )

        assert batch.success_count == 0
        assert {r.error for r in batch.results} == {"Insufficient escrow balance"}
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_balance_lookup_failure_fails_everything(self, sleep) -> None:
        transport = FakeTransport()
        transport.balance = AsyncMock(side_effect=ConnectionError("rpc down"))

        batch = await process_payouts(transport, _payouts(1.0, 2.0), sleep=sleep)

        assert batch.failed_count == 2
        assert {r.error for r in batch.results} == {"Escrow balance unavailable"}
        assert transport.sent == []
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dust_is_skipped(self, sleep) -> None:
        transport = FakeTransport()

        batch = await process_payouts(
            transport, _payouts(0.0005, 1.0), min_amount=0.001, sleep=sleep
        )

        assert transport.sent == [(WALLET_B, 1.0)]
        assert batch.results[0].success is False
        assert batch.results[0].error == "Amount too small (< 0.001 SOL)"
        assert batch.results[1].success is True

    @pytest.mark.asyncio
    async def test_one_failure_does_not_block_others(self, sleep) -> None:
        transport = FakeTransport(failing_wallets={WALLET_A})

        batch = await process_payouts(transport, _payouts(1.0, 2.0, 0.5), sleep=sleep)

        assert [r.success for r in batch.results] == [False, True, True]
        assert batch.results[0].error == "blockhash not found"
        assert batch.total_paid == 2.5
        assert batch.failed_count == 1
        assert batch.success_count == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, sleep) -> None:
        batch = await process_payouts(FakeTransport(), [], sleep=sleep)
        assert batch.results == []
        assert batch.success is True
