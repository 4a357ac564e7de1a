"""Tests for sc_common.id_generator and sc_common.datetime_utils."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from src.sc_common.datetime_utils import seconds_ago, utc_now
from src.sc_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        assert isinstance(gen.next_id(), str)

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

    def test_clock_going_backwards_keeps_order(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        with patch.object(gen, "_now_ms", return_value=1_800_000_000_000):
            first = int(gen.next_id())
        with patch.object(gen, "_now_ms", return_value=1_799_999_999_000):
            second = int(gen.next_id())
        assert second > first

    def test_invalid_machine_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=1024)

    def test_module_level_helper(self) -> None:
        assert generate_id() != generate_id()


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None

    def test_is_utc(self) -> None:
        assert utc_now().tzinfo == UTC

    def test_seconds_ago(self) -> None:
        delta = utc_now() - seconds_ago(60)
        assert timedelta(seconds=59) < delta < timedelta(seconds=61)
