"""
Barrier stream
==============

Round-based synchronization: every round asks each live source once and
waits for all of them before yielding the snapshot.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Iterable

from kungfu import Error, Ok

from .._base import Combinator, Step
from .._helpers import Requests, failures, forwarded, shutdown
from .._types import Snapshot, Source

logger = logging.getLogger(__name__)


class BarrierStream[T](Combinator[Snapshot[typing.Any]]):
    """Snapshot per fully settled round. Build with `barrier()`."""

    def __init__(
        self,
        sources: Iterable[Source[T]],
        *,
        lazy: bool = False,
        initial: typing.Any = None,
    ) -> None:
        super().__init__()
        self._sources: list[Source[T]] = list(sources)
        self._lazy = lazy
        self._requests = Requests()
        self._active = list(range(len(self._sources)))
        self._values: Snapshot[typing.Any] = [initial] * len(self._sources)
        self._done_values: list[typing.Any] = [initial] * len(self._sources)

    async def next(self, *args: typing.Any) -> Step[typing.Any]:
        if self._terminal is not None:
            return self._terminal
        args = forwarded(args)
        if not self._active:
            return await self.aclose(list(self._done_values))

        for index in self._active:
            self._requests.issue(index, self._sources[index], args)
        outcomes = self._requests.take(await self._requests.settle_all_or_first_error())

        if failed := failures(outcomes):
            for index, outcome in outcomes.items():
                match outcome:
                    case Ok(step) if step.done:
                        self._finish(index, step.value)
                    case _:
                        pass
            for index, error in failed.items():
                logger.debug("source %d failed: %r", index, error)
                self._active.remove(index)
            await self.aclose()
            raise next(iter(failed.values()))

        completed = False
        for index, outcome in outcomes.items():
            match outcome:
                case Ok(step) if step.done:
                    self._finish(index, step.value)
                    completed = True
                case Ok(step):
                    self._values[index] = step.value
                case Error(_):
                    pass

        if not self._active or (self._lazy and completed):
            return await self.aclose(list(self._done_values))
        return Step(list(self._values))

    def _finish(self, index: int, final: typing.Any) -> None:
        logger.debug("source %d finished", index)
        self._active.remove(index)
        self._done_values[index] = final

    async def _release(self) -> None:
        live = {index: self._sources[index] for index in self._active}
        self._active = []
        await shutdown(self._requests, live)


def barrier[T](
    sources: Iterable[Source[T]],
    *,
    lazy: bool = False,
    initial: typing.Any = None,
) -> BarrierStream[T]:
    """
    Synchronize sources round by round.

    Yields the snapshot after each round while any source is live and
    finishes with the list of completion values. With `lazy=True` the first
    completion ends everything and the still-live sources are closed.
    """
    return BarrierStream(sources, lazy=lazy, initial=initial)


__all__ = ("BarrierStream", "barrier")
