import asyncio

from kungfu import Error, Ok

from aiocombinators import Collected, Combine, barrier, collect

from _sources import Countdown


def test_collect_returns_items_and_terminal_value() -> None:
    async def run():
        result = await collect(barrier([Countdown(2), Countdown(1)]))

        match result:
            case Ok(Collected(items, terminal)):
                assert items == [[1, 0], [0, 0]]
                assert terminal == ["final", "final"]
            case Error(error):
                raise AssertionError(f"unexpected error: {error!r}")

    asyncio.run(run())


def test_collect_lifts_source_errors() -> None:
    async def run():
        healthy = Countdown(5)
        result = await collect(Combine([Countdown(4, fail_at=2), healthy]))

        match result:
            case Ok(collected):
                raise AssertionError(f"unexpected success: {collected!r}")
            case Error(error):
                assert isinstance(error, RuntimeError)
                assert str(error) == "Error thrown at 2"
        assert healthy.close_calls == 1

    asyncio.run(run())


def test_collect_is_lazy() -> None:
    async def run():
        source = Countdown(3)
        pending = collect(barrier([source]))

        assert source.requests == 0
        await pending
        assert source.requests == 4

    asyncio.run(run())
