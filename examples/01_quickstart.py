from __future__ import annotations

from _infra import FakeFeed, banner, run

from aiocombinators import CombineLatest, Collected, barrier, collect, race
from kungfu import Error, Ok


def feeds() -> list[FakeFeed]:
    return [
        FakeFeed("btc", [100.0, 101.5, 99.8, 102.2], delay_seconds=0.03),
        FakeFeed("eth", [10.0, 10.4, 10.1], delay_seconds=0.05),
    ]


async def main() -> None:
    banner("01_quickstart: race, barrier, combine latest")

    async for price in race(feeds()):
        print(f"tick: {price}")

    async for snapshot in barrier(feeds()):
        print(f"round: {snapshot}")

    async with CombineLatest(feeds()) as latest:
        async for snapshot in latest:
            print(f"latest: {snapshot}")

    match await collect(race(feeds(), combine=True, lazy=True)):
        case Ok(Collected(items, result)):
            print(f"{len(items)} snapshots, finished with {result}")
        case Error(err):
            print(f"error: {err!r}")


if __name__ == "__main__":
    run(main)
