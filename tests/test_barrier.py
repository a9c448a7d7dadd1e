import asyncio

import pytest

from aiocombinators import Step, barrier

from _sources import Countdown, drain


def test_barrier_yields_one_snapshot_per_round() -> None:
    async def run():
        combination = barrier([Countdown(6, delay=0.05), Countdown(3, delay=0.07)])

        items, result = await drain(combination)

        assert items == [[5, 2], [4, 1], [3, 0], [2, 0], [1, 0], [0, 0]]
        assert result == ["final", "final"]

    asyncio.run(run())


def test_barrier_in_async_for() -> None:
    async def run():
        snapshots = [snapshot async for snapshot in barrier([Countdown(3), Countdown(2)])]

        assert snapshots == [[2, 1], [1, 0], [0, 0]]

    asyncio.run(run())


def test_lazy_barrier_finishes_on_first_completion() -> None:
    async def run():
        slow = Countdown(6, delay=0.05)
        fast = Countdown(3, delay=0.07)
        combination = barrier([slow, fast], lazy=True)

        items, result = await drain(combination)

        assert items == [[5, 2], [4, 1], [3, 0]]
        assert result == [None, "final"]
        assert slow.close_calls == 1
        assert fast.close_calls == 0

    asyncio.run(run())


def test_no_round_mixes_values_from_unsettled_requests() -> None:
    async def run():
        fast = Countdown(4)
        slow = Countdown(4, delay=0.02)
        combination = barrier([fast, slow])

        items, _ = await drain(combination)

        assert items == [[3, 3], [2, 2], [1, 1], [0, 0]]
        assert fast.max_in_flight == slow.max_in_flight == 1

    asyncio.run(run())


def test_return_closes_active_sources() -> None:
    async def run():
        first = Countdown(6, delay=0.05)
        second = Countdown(3, delay=0.07)
        combination = barrier([first, second])

        assert await combination.next() == Step([5, 2])
        assert await combination.aclose() == Step(None, done=True)

        assert first.close_calls == 1
        assert second.close_calls == 1

    asyncio.run(run())


def test_throw_closes_sources_and_raises() -> None:
    async def run():
        first = Countdown(6, delay=0.05)
        second = Countdown(3, delay=0.07)
        combination = barrier([first, second])

        assert await combination.next() == Step([5, 2])
        with pytest.raises(RuntimeError, match="Error thrown at 2"):
            await combination.athrow(RuntimeError("Error thrown at 2"))

        assert first.close_calls == 1
        assert second.close_calls == 1

    asyncio.run(run())


def test_source_error_propagates_and_closes_survivors() -> None:
    async def run():
        failing = Countdown(7, fail_at=3)
        healthy = Countdown(4)
        combination = barrier([failing, healthy])

        assert await combination.next() == Step([6, 3])
        assert await combination.next() == Step([5, 2])
        assert await combination.next() == Step([4, 1])
        with pytest.raises(RuntimeError, match="Error thrown at 3"):
            await combination.next()

        assert failing.close_calls == 0
        assert healthy.close_calls == 1
        assert await combination.next() == Step(None, done=True)

    asyncio.run(run())


def test_completed_source_is_not_closed_when_a_sibling_fails() -> None:
    async def run():
        finished = Countdown(1)
        failing = Countdown(3, delay=0.01, fail_at=1)
        healthy = Countdown(5)
        combination = barrier([finished, failing, healthy])

        assert await combination.next() == Step([0, 2, 4])
        with pytest.raises(RuntimeError, match="Error thrown at 1"):
            await combination.next()

        assert finished.close_calls == 0
        assert failing.close_calls == 0
        assert healthy.close_calls == 1

    asyncio.run(run())


def test_more_than_one_argument_is_rejected() -> None:
    async def run():
        source = Countdown(2)

        with pytest.raises(TypeError):
            await barrier([source]).next(1, 2)

        assert source.requests == 0

    asyncio.run(run())


def test_initial_value_stays_for_sources_that_never_finished() -> None:
    async def run():
        combination = barrier([Countdown(3), Countdown(1)], lazy=True, initial="pending")

        assert await combination.next() == Step([2, 0])
        assert await combination.next() == Step(["pending", "final"], done=True)

    asyncio.run(run())


def test_empty_source_set_is_done_immediately() -> None:
    async def run():
        assert await barrier([]).next() == Step([], done=True)

    asyncio.run(run())
