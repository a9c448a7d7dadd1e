from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


def _no_prices() -> list[float]:
    return []


@dataclass(slots=True)
class FakeFeed:
    """Price feed: yields `prices` one per `delay_seconds`, finishes with its name."""

    name: str
    prices: list[float] = field(default_factory=_no_prices)
    delay_seconds: float = 0.0
    closed: bool = False

    def __aiter__(self) -> FakeFeed:
        return self

    async def __anext__(self) -> float:
        if self.closed or not self.prices:
            self.closed = True
            raise StopAsyncIteration(f"{self.name}: done")
        await asyncio.sleep(self.delay_seconds)
        return self.prices.pop(0)

    async def aclose(self) -> None:
        self.closed = True


def banner(title: str) -> None:  # pragma: no cover (examples only)
    print(f"\n== {title} ==")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:  # pragma: no cover (examples only)
    asyncio.run(main())
