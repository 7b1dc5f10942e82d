"""Tests for dd_common.id_generator and dd_common.datetime_utils."""

import time
from datetime import UTC, datetime

from src.dd_common.datetime_utils import now_ms, utc_now
from src.dd_common.id_generator import (
    SnowflakeIdGenerator,
    generate_round_id,
    generate_stake_id,
)


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        assert isinstance(SnowflakeIdGenerator(machine_id=1).next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_machine_id_range(self) -> None:
        try:
            SnowflakeIdGenerator(machine_id=1024)
        except ValueError:
            return
        raise AssertionError("machine_id 1024 should be rejected")


class TestPrefixedIds:
    def test_round_ids_distinct_within_a_millisecond(self) -> None:
        a, b = generate_round_id(), generate_round_id()
        assert a.startswith("round_")
        assert a != b

    def test_stake_id_prefix(self) -> None:
        assert generate_stake_id().startswith("bet_")


class TestClock:
    def test_now_ms_is_epoch_millis(self) -> None:
        assert abs(now_ms() - int(time.time() * 1000)) < 1000

    def test_utc_now_is_aware(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo == UTC
