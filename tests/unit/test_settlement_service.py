"""Unit tests for SettlementService — the shared settle-and-disburse path."""

from unittest.mock import AsyncMock

import pytest

from src.dd_common.enums import REFUNDED
from src.dd_common.errors import PriceFeedUnavailableError
from src.dd_payout.application.service import process_payouts
from src.dd_settlement.application.service import SettlementService
from tests.factories import TX_SIG, WALLET_A, WALLET_B, WALLET_C, FakeTransport

START = {"AAA": 1.0, "BBB": 1.0, "CCC": 1.0}


async def _no_sleep(_: float) -> None:
    return None


async def _fast_payouts(transport, payouts):
    return await process_payouts(transport, payouts, sleep=_no_sleep)


def _service(store, price_feed, transport, clock) -> SettlementService:
    return SettlementService(
        store,
        price_feed,
        transport,
        fee_rate=0.10,
        min_distinct_wallets=2,
        clock=clock,
        payout_processor=_fast_payouts,
    )


async def _live_with_stakes(store, tokens, stakes):
    await store.start_new_live_round(tokens, START)
    for wallet, token, amount in stakes:
        await store.add_stake(wallet, token, amount, TX_SIG)
    return await store.get_live_round()


class TestNormalSettlement:
    @pytest.mark.asyncio
    async def test_pays_winners_and_credits_leaderboard(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0), (WALLET_C, "BBB", 8.0)]
        )
        price_feed.prices = {"id-aaa": 1.2, "id-bbb": 0.9, "id-ccc": 1.1}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.refunded is False
        assert outcome.winner == "AAA"
        assert outcome.winning_change == pytest.approx(20.0)
        assert [c.symbol for c in outcome.changes] == ["AAA", "BBB", "CCC"]
        assert transport.sent == [(WALLET_A, pytest.approx(4.5)), (WALLET_B, pytest.approx(4.5))]
        assert outcome.payout_batch.success_count == 2
        assert [p.tx_signature for p in outcome.payouts] == ["sig_1", "sig_2"]

        board = await store.get_leaderboard(10)
        assert {e.wallet for e in board} == {WALLET_A, WALLET_B}

        history = await store.get_round_history(10)
        assert len(history) == 1
        assert history[0].round.winner == "AAA"
        assert history[0].round.end_prices == {"AAA": 1.2, "BBB": 0.9, "CCC": 1.1}
        assert history[0].settled_at == clock()

    @pytest.mark.asyncio
    async def test_failed_send_not_credited(self, store, tokens, price_feed, clock) -> None:
        transport = FakeTransport(failing_wallets={WALLET_B})
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0)]
        )
        price_feed.prices = {"id-aaa": 2.0, "id-bbb": 1.0, "id-ccc": 1.0}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.payout_batch.failed_count == 1
        assert [e.wallet for e in await store.get_leaderboard(10)] == [WALLET_A]
        # settlement is final regardless of the failed transfer
        assert await store.get_live_round() is None
        assert outcome.payouts[1].tx_signature is None
        assert "WARNING: 1 payouts failed" in outcome.describe()

    @pytest.mark.asyncio
    async def test_manual_payout_credits_everyone(self, store, tokens, price_feed, clock) -> None:
        transport = FakeTransport(configured=False)
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0)]
        )
        price_feed.prices = {"id-aaa": 2.0, "id-bbb": 1.0, "id-ccc": 1.0}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.payout_batch is None
        assert outcome.auto_payout_enabled is False
        assert transport.sent == []
        assert len(await store.get_leaderboard(10)) == 2
        assert outcome.describe()[-1].startswith("Recorded 2 payouts (manual payout required")

    @pytest.mark.asyncio
    async def test_nobody_on_winner(self, store, tokens, price_feed, transport, clock) -> None:
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "BBB", 1.0)]
        )
        price_feed.prices = {"id-aaa": 1.0, "id-bbb": 1.0, "id-ccc": 5.0}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.winner == "CCC"
        assert outcome.payouts == []
        assert transport.sent == []
        assert outcome.describe()[-1] == "No winners this round"
        assert len(await store.get_round_history(10)) == 1

    @pytest.mark.asyncio
    async def test_empty_round_settles_normally(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        live = await _live_with_stakes(store, tokens, [])
        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)
        assert outcome.refunded is False
        assert outcome.round.total_pool == 0


class TestRefund:
    @pytest.mark.asyncio
    async def test_single_wallet_refunded_in_full(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_A, "BBB", 2.0)]
        )

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.refunded is True
        assert outcome.winner == REFUNDED
        assert outcome.round.end_prices == {}
        assert outcome.changes == []
        assert [(p.amount, p.bet_amount) for p in outcome.payouts] == [(1.0, 1.0), (2.0, 2.0)]
        assert transport.sent == [(WALLET_A, 1.0), (WALLET_A, 2.0)]
        # refunds are not winnings
        assert await store.get_leaderboard(10) == []
        price_feed.fetch_prices.assert_not_awaited()
        assert outcome.describe()[0].startswith("Refunded round")

    @pytest.mark.asyncio
    async def test_refund_history_entry(self, store, tokens, price_feed, transport, clock) -> None:
        live = await _live_with_stakes(store, tokens, [(WALLET_A, "AAA", 1.0)])
        await _service(store, price_feed, transport, clock).settle_live_round(live)

        (entry,) = await store.get_round_history(10)
        assert entry.round.refunded is True
        assert entry.payouts[0].amount == entry.payouts[0].bet_amount == 1.0


class TestIdempotency:
    @pytest.mark.asyncio
    async def test_second_settle_is_noop(self, store, tokens, price_feed, transport, clock) -> None:
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0)]
        )
        service = _service(store, price_feed, transport, clock)

        assert await service.settle_live_round(live) is not None
        assert await service.settle_live_round(live) is None
        assert len(transport.sent) == 2
        assert len(await store.get_round_history(10)) == 1

    @pytest.mark.asyncio
    async def test_price_feed_down_leaves_round_live(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0)]
        )
        price_feed.fetch_prices = AsyncMock(side_effect=PriceFeedUnavailableError())

        with pytest.raises(PriceFeedUnavailableError):
            await _service(store, price_feed, transport, clock).settle_live_round(live)
        assert (await store.get_live_round()).id == live.id

    @pytest.mark.asyncio
    async def test_stale_snapshot_does_not_settle_successor(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        stale = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "BBB", 1.0)]
        )
        await store.end_round({}, REFUNDED)
        successor = await store.start_new_live_round(tokens, START)
        price_feed.prices = {"id-aaa": 2.0, "id-bbb": 1.0, "id-ccc": 1.0}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(stale)

        assert outcome is None
        live = await store.get_live_round()
        assert live is not None and live.id == successor.id
        assert transport.sent == []
        assert await store.get_round_history(10) == []


class TestEscrowUnreachable:
    @pytest.mark.asyncio
    async def test_balance_failure_still_records_history(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        transport.balance = AsyncMock(side_effect=ConnectionError("rpc down"))
        live = await _live_with_stakes(
            store, tokens, [(WALLET_A, "AAA", 1.0), (WALLET_B, "AAA", 1.0)]
        )
        price_feed.prices = {"id-aaa": 2.0, "id-bbb": 1.0, "id-ccc": 1.0}

        outcome = await _service(store, price_feed, transport, clock).settle_live_round(live)

        assert outcome.winner == "AAA"
        assert {r.error for r in outcome.payout_batch.results} == {"Escrow balance unavailable"}
        assert transport.sent == []
        assert await store.get_leaderboard(10) == []
        (entry,) = await store.get_round_history(10)
        assert entry.round.id == live.id
        assert all(p.tx_signature is None for p in entry.payouts)
