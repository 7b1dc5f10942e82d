"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.dd_round.domain.models import Token
from src.dd_round.infrastructure.kv_backend import InMemoryKeyValueBackend
from src.dd_round.infrastructure.persistence import RoundStore
from tests.factories import MINUTE, FakeClock, FakeTransport, make_tokens


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> InMemoryKeyValueBackend:
    return InMemoryKeyValueBackend()


@pytest.fixture
def store(backend: InMemoryKeyValueBackend, clock: FakeClock) -> RoundStore:
    return RoundStore(
        backend,
        clock=clock,
        key_prefix="test",
        round_duration_ms=15 * MINUTE,
        staking_window_ms=2 * MINUTE,
        activity_feed_size=50,
        history_size=100,
        fee_rate=0.10,
    )


@pytest.fixture
def tokens() -> list[Token]:
    return make_tokens("AAA", "BBB", "CCC")


@pytest.fixture
def price_feed(tokens: list[Token]) -> MagicMock:
    """Price feed whose quotes the test sets via ``price_feed.prices`` (keyed by token id)."""
    feed = MagicMock()
    feed.prices = {t.id: 1.0 for t in tokens}

    async def _fetch_prices(token_ids: list[str]) -> dict[str, float]:
        return {i: feed.prices[i] for i in token_ids if i in feed.prices}

    feed.fetch_prices = AsyncMock(side_effect=_fetch_prices)
    feed.discover_tokens = AsyncMock(return_value=tokens)
    feed.fetch_round_token_prices = AsyncMock(return_value=[])
    return feed


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
