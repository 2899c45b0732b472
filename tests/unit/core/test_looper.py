"""Tests for the iteration looper."""

import asyncio
import time

import pytest

from stepflow import Looper, Settings


class TestContinueLoop:
    def test_bounded_loop_count(self) -> None:
        looper = Looper(Settings(loop_count=2))
        assert looper.continue_loop is True
        looper.iterations = 2
        assert looper.continue_loop is False

    def test_non_positive_loop_count_is_unbounded(self) -> None:
        for count in (0, -1):
            looper = Looper(Settings(loop_count=count))
            looper.iterations = 10_000
            assert looper.continue_loop is True

    def test_not_running_starts_cancelled(self) -> None:
        looper = Looper(Settings(loop_count=5), running=False)
        assert looper.continue_loop is False

    def test_stop_is_idempotent(self) -> None:
        looper = Looper(Settings(loop_count=0))
        looper.stop()
        looper.stop()
        assert looper.continue_loop is False
        assert looper.cancelled is True

    def test_duration_elapses(self) -> None:
        looper = Looper(Settings(loop_count=0, duration=0.05))
        assert looper.continue_loop is True
        time.sleep(0.1)
        assert looper.continue_loop is False


class TestRun:
    @pytest.mark.asyncio
    async def test_runs_exactly_loop_count_times(self) -> None:
        seen: list[int] = []

        async def iterate(n: int) -> None:
            seen.append(n)

        looper = Looper(Settings(loop_count=3))
        total = await looper.run(iterate)

        assert total == 3
        assert seen == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_iterations_never_overlap(self) -> None:
        active = 0
        max_active = 0

        async def iterate(n: int) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            active -= 1

        await Looper(Settings(loop_count=4)).run(iterate)
        assert max_active == 1

    @pytest.mark.asyncio
    async def test_stop_takes_effect_before_next_iteration(self) -> None:
        looper = Looper(Settings(loop_count=0))
        seen: list[int] = []

        async def iterate(n: int) -> None:
            seen.append(n)
            if n == 2:
                looper.stop()

        total = await looper.run(iterate)
        assert total == 2
        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_duration_bounds_unbounded_loop(self) -> None:
        looper = Looper(Settings(loop_count=0, duration=0.1))

        async def iterate(n: int) -> None:
            await asyncio.sleep(0.02)

        started = time.monotonic()
        total = await looper.run(iterate)
        elapsed = time.monotonic() - started

        assert total >= 1
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_iterator_error_propagates(self) -> None:
        looper = Looper(Settings(loop_count=3, duration=10))

        async def iterate(n: int) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await looper.run(iterate)
        assert looper.iterations == 1
