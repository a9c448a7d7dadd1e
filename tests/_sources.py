from __future__ import annotations

import asyncio


class Countdown:
    """
    Spy source: yields count-1 .. 0 (each after `delay` seconds), then finishes
    with "final". Raises at the value equal to `fail_at`.
    """

    def __init__(self, count: int, *, delay: float = 0.0, fail_at: int | None = None) -> None:
        self.remaining = count
        self.delay = delay
        self.fail_at = fail_at
        self.exhausted = False
        self.requests = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.close_calls = 0

    def __aiter__(self) -> Countdown:
        return self

    async def __anext__(self) -> int:
        self.requests += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.exhausted:
                raise StopAsyncIteration
            if self.remaining == 0:
                self.exhausted = True
                raise StopAsyncIteration("final")
            self.remaining -= 1
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.remaining == self.fail_at:
                self.exhausted = True
                raise RuntimeError(f"Error thrown at {self.remaining}")
            return self.remaining
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.close_calls += 1
        self.exhausted = True


async def echo():
    """Async generator that yields back whatever was sent to it."""
    received = None
    while True:
        received = yield received


async def drain(combinator) -> tuple[list, object]:
    items = []
    while True:
        step = await combinator.next()
        if step.done:
            return items, step.value
        items.append(step.value)
