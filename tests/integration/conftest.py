"""Integration-test fixtures.

The app runs in-process over ASGITransport with every service getter
overridden: an in-memory store, a scripted price feed, a fake escrow
transport and a hand-moved clock. No Redis, no network.
"""

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src import dependencies
from src.dd_admin.application.service import AdminService
from src.dd_payout.application.service import process_payouts
from src.dd_round.application.orchestrator import RoundAdvancementService
from src.dd_round.application.service import RoundQueryService
from src.dd_round.infrastructure.persistence import RoundStore
from src.dd_settlement.application.service import SettlementService
from src.dd_staking.application.service import StakeAdmissionService
from src.main import app
from tests.factories import ADMIN_PASSWORD, MINUTE, FakeClock, FakeTransport


async def _no_sleep(_: float) -> None:
    return None


async def _fast_payouts(transport, payouts):
    return await process_payouts(transport, payouts, sleep=_no_sleep)


@dataclass
class Harness:
    store: RoundStore
    price_feed: object
    transport: FakeTransport
    clock: FakeClock


@pytest.fixture
def harness(store, price_feed, transport, clock, monkeypatch) -> Harness:
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    return Harness(store=store, price_feed=price_feed, transport=transport, clock=clock)


@pytest_asyncio.fixture
async def client(harness: Harness) -> AsyncGenerator[AsyncClient, None]:
    def settlement() -> SettlementService:
        return SettlementService(
            harness.store,
            harness.price_feed,
            harness.transport,
            fee_rate=0.10,
            min_distinct_wallets=2,
            clock=harness.clock,
            payout_processor=_fast_payouts,
        )

    app.dependency_overrides[dependencies.get_query_service] = lambda: RoundQueryService(
        harness.store,
        harness.price_feed,
        clock=harness.clock,
        round_duration_ms=15 * MINUTE,
        staking_window_ms=2 * MINUTE,
        preview_window_ms=2 * MINUTE,
    )
    app.dependency_overrides[dependencies.get_stake_service] = lambda: StakeAdmissionService(
        harness.store, clock=harness.clock, min_stake=0.1, max_stake=5.0
    )
    app.dependency_overrides[dependencies.get_advancement_service] = (
        lambda: RoundAdvancementService(
            harness.store,
            harness.price_feed,
            settlement(),
            clock=harness.clock,
            tokens_per_round=3,
            preview_window_ms=2 * MINUTE,
            lock_ttl_ms=30_000,
        )
    )
    app.dependency_overrides[dependencies.get_admin_service] = lambda: AdminService(
        harness.store,
        harness.price_feed,
        harness.transport,
        settlement(),
        tokens_per_round=3,
        min_distinct_wallets=2,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
