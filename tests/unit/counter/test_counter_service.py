"""Tests for ticket number allocation."""

import asyncio

import pytest

from tmtickets.config import Config
from tmtickets.core.core import Core
from tmtickets.errors import SequenceContentionError, StorageError


class TestAllocateNext:
    """Tests for sequential allocation."""

    def test_first_number_is_start(self, core):
        """Test that a fresh counter issues the configured start value."""
        assert asyncio.run(core.services.counter.allocate_next()) == "T-1000"

    def test_numbers_increase_by_one(self, core):
        """Test that consecutive allocations are strictly increasing."""

        async def allocate_three():
            return [await core.services.counter.allocate_next() for _ in range(3)]

        assert asyncio.run(allocate_three()) == ["T-1000", "T-1001", "T-1002"]

    def test_prefix_and_start_from_config(self, backend):
        """Test that prefix and start value come from configuration."""
        config = Config(_env_file=None, storage_backend="memory", ticket_number_prefix="TM-", ticket_number_start=1)
        core = Core(config, backend)
        assert asyncio.run(core.services.counter.allocate_next()) == "TM-1"

    def test_current_value_does_not_increment(self, core):
        """Test that current_value reports the last issued value without allocating."""

        async def scenario():
            before = await core.services.counter.current_value()
            await core.services.counter.allocate_next()
            after = await core.services.counter.current_value()
            again = await core.services.counter.current_value()
            return before, after, again

        assert asyncio.run(scenario()) == (999, 1000, 1000)


class TestConcurrentAllocation:
    """Tests for allocation under contention."""

    def test_concurrent_callers_get_unique_increasing_numbers(self, backend):
        """Test that concurrent allocations never repeat and cover a contiguous range."""
        config = Config(
            _env_file=None, storage_backend="memory", ticket_number_max_attempts=20, ticket_number_backoff=0.001
        )
        core = Core(config, backend)

        async def allocate_many():
            return await asyncio.gather(*(core.services.counter.allocate_next() for _ in range(10)))

        numbers = asyncio.run(allocate_many())
        values = sorted(int(number.removeprefix("T-")) for number in numbers)
        assert len(set(numbers)) == 10
        assert values == list(range(1000, 1010))

    def test_concurrent_first_allocation_creates_counter_once(self, core):
        """Test that two callers racing on a fresh counter both succeed with distinct numbers."""

        async def allocate_two():
            return await asyncio.gather(core.services.counter.allocate_next(), core.services.counter.allocate_next())

        assert sorted(asyncio.run(allocate_two())) == ["T-1000", "T-1001"]

    def test_exhausted_retries_raise_contention(self, core, backend):
        """Test that losing every conditional write ends in SequenceContentionError."""
        backend.counters.always_conflict = True
        with pytest.raises(SequenceContentionError, match="Sequence contention, try again"):
            asyncio.run(core.services.counter.allocate_next())
        assert backend.counters.replace_calls == core.config.ticket_number_max_attempts

    def test_failed_allocation_does_not_advance_counter(self, core, backend):
        """Test that a contended allocation leaves the counter value unchanged."""
        backend.counters.always_conflict = True
        with pytest.raises(SequenceContentionError):
            asyncio.run(core.services.counter.allocate_next())
        backend.counters.always_conflict = False
        assert asyncio.run(core.services.counter.allocate_next()) == "T-1000"

    def test_storage_failure_is_not_retried(self, core, backend):
        """Test that store failures other than version conflicts propagate immediately."""
        backend.counters.unavailable = True
        with pytest.raises(StorageError, match="counter store is down"):
            asyncio.run(core.services.counter.allocate_next())
        assert backend.counters.replace_calls == 0
