"""Unit tests for AdminService."""

from unittest.mock import AsyncMock

import pytest

from src.dd_admin.application.service import AdminService
from src.dd_common.errors import (
    LiveRoundExistsError,
    NoLiveRoundError,
    RoundAlreadySettledError,
)
from src.dd_payout.application.service import process_payouts
from src.dd_settlement.application.service import SettlementService
from tests.factories import TX_SIG, WALLET_A, WALLET_B, FakeTransport


async def _no_sleep(_: float) -> None:
    return None


async def _fast_payouts(transport, payouts):
    return await process_payouts(transport, payouts, sleep=_no_sleep)


def _admin(store, price_feed, transport, clock) -> AdminService:
    settlement = SettlementService(
        store,
        price_feed,
        transport,
        fee_rate=0.10,
        min_distinct_wallets=2,
        clock=clock,
        payout_processor=_fast_payouts,
    )
    return AdminService(
        store, price_feed, transport, settlement, tokens_per_round=3, min_distinct_wallets=2
    )


class TestStartRound:
    @pytest.mark.asyncio
    async def test_starts_live_round(self, store, price_feed, transport, clock) -> None:
        resp = await _admin(store, price_feed, transport, clock).start_round()

        assert resp.round.status == "live"
        assert resp.round.start_prices == {"AAA": 1.0, "BBB": 1.0, "CCC": 1.0}
        assert resp.message == "Round is now LIVE with AAA, BBB, CCC!"
        price_feed.discover_tokens.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_rejects_when_live_exists(self, store, tokens, price_feed, transport, clock) -> None:
        await store.start_new_live_round(tokens, {"AAA": 1.0})
        with pytest.raises(LiveRoundExistsError):
            await _admin(store, price_feed, transport, clock).start_round()


class TestEndRound:
    @pytest.mark.asyncio
    async def test_no_live_round(self, store, price_feed, transport, clock) -> None:
        with pytest.raises(NoLiveRoundError):
            await _admin(store, price_feed, transport, clock).end_round()

    @pytest.mark.asyncio
    async def test_force_end_pays_winner(self, store, tokens, price_feed, transport, clock) -> None:
        await store.start_new_live_round(tokens, {"AAA": 1.0, "BBB": 1.0, "CCC": 1.0})
        await store.add_stake(WALLET_A, "AAA", 1.0, TX_SIG)
        await store.add_stake(WALLET_B, "BBB", 1.0, TX_SIG)
        price_feed.prices = {"id-aaa": 1.1, "id-bbb": 1.0, "id-ccc": 1.0}

        resp = await _admin(store, price_feed, transport, clock).end_round()

        assert resp.refunded is False
        assert resp.winner == "AAA"
        assert resp.message == "Round ended! Winner: AAA (10.00%)"
        assert resp.payout_result.success_count == 1
        assert resp.payouts[0].amount == pytest.approx(1.8)
        assert resp.payouts[0].tx_signature == "sig_1"
        assert resp.auto_payout_enabled is True
        assert await store.get_live_round() is None

    @pytest.mark.asyncio
    async def test_force_end_refunds_single_bettor(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        await store.start_new_live_round(tokens, {"AAA": 1.0})
        await store.add_stake(WALLET_A, "AAA", 1.0, TX_SIG)
        await store.add_stake(WALLET_A, "BBB", 2.0, TX_SIG)

        resp = await _admin(store, price_feed, transport, clock).end_round()

        assert resp.refunded is True
        assert resp.winner == "REFUNDED"
        assert resp.reason == "Only 1 unique bettor(s) - minimum 2 required"
        assert "need at least 2 to play" in resp.message
        assert {p.amount for p in resp.payouts} == {1.0, 2.0}

    @pytest.mark.asyncio
    async def test_lost_race_to_settle(self, store, tokens, price_feed, transport, clock) -> None:
        await store.start_new_live_round(tokens, {"AAA": 1.0})
        admin = _admin(store, price_feed, transport, clock)
        admin._settlement.settle_live_round = AsyncMock(return_value=None)

        with pytest.raises(RoundAlreadySettledError):
            await admin.end_round()


    @pytest.mark.asyncio
    async def test_round_rolled_over_before_settle(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        await store.start_new_live_round(tokens, {"AAA": 1.0, "BBB": 1.0, "CCC": 1.0})
        await store.add_stake(WALLET_A, "AAA", 1.0, TX_SIG)
        await store.add_stake(WALLET_B, "BBB", 1.0, TX_SIG)
        read_live = store.get_live_round
        successor_ids = []

        async def read_then_advance():
            # the scheduled advance settles and replaces the round right after admin reads it
            stale = await read_live()
            await store.end_round({}, "REFUNDED")
            successor_ids.append((await store.start_new_live_round(tokens, {"AAA": 1.0})).id)
            return stale

        store.get_live_round = read_then_advance
        price_feed.prices = {"id-aaa": 1.5, "id-bbb": 1.0, "id-ccc": 1.0}

        with pytest.raises(RoundAlreadySettledError):
            await _admin(store, price_feed, transport, clock).end_round()

        live = await read_live()
        assert live.id == successor_ids[0]
        assert transport.sent == []

class TestHistory:
    @pytest.mark.asyncio
    async def test_settled_rounds_appear_newest_first(
        self, store, tokens, price_feed, transport, clock
    ) -> None:
        admin = _admin(store, price_feed, transport, clock)
        first = await admin.start_round()
        await admin.end_round()
        clock.advance(1_000)
        second = await admin.start_round()
        await admin.end_round()

        resp = await admin.get_history(20)

        assert resp.count == 2
        assert [h.round.id for h in resp.history] == [second.round.id, first.round.id]
        assert resp.history[0].settled_at == clock.now


class TestPayoutStatus:
    @pytest.mark.asyncio
    async def test_configured(self, store, price_feed, clock) -> None:
        transport = FakeTransport(escrow_balance=12.5)
        resp = await _admin(store, price_feed, transport, clock).get_payout_status()

        assert resp.payout_configured is True
        assert resp.escrow_balance == 12.5
        assert resp.rpc_url == "https://rpc.test"

    @pytest.mark.asyncio
    async def test_unconfigured(self, store, price_feed, clock) -> None:
        transport = FakeTransport(configured=False)
        resp = await _admin(store, price_feed, transport, clock).get_payout_status()

        assert resp.payout_configured is False
        assert resp.escrow_wallet is None
        assert resp.escrow_balance is None

    @pytest.mark.asyncio
    async def test_rpc_failure_reports_null_balance(self, store, price_feed, clock) -> None:
        transport = FakeTransport()
        transport.balance = AsyncMock(side_effect=ConnectionError("rpc down"))

        resp = await _admin(store, price_feed, transport, clock).get_payout_status()

        assert resp.payout_configured is True
        assert resp.escrow_balance is None
