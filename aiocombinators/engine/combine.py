"""
Combine
=======

Pull-driven combination of several async iterators.

Each `next()` call issues one request to every live source that has none
outstanding, then resolves the round by the configured Method:

- all / all_settled: barrier, every pending request settles, snapshot is yielded
- race / any: the first settled request wins, its bare value is yielded

Sources are closed exactly once, on the first terminal event.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Iterable
from typing import assert_never

from kungfu import Error, Ok

from .._base import Combinator, Step
from .._helpers import Requests, failures, forwarded, shutdown
from .._types import Settled, Snapshot, Source
from .policy import CombinePolicy, Method

logger = logging.getLogger(__name__)


class Combine[T](Combinator[typing.Any]):
    """
    Stateful multi-source combinator.

    Args:
        sources: fixed set of sources, polled by index.
        close: sources this instance must aclose() on shutdown
            (defaults to all of them). Lets several combinations share
            sources without closing them twice.
        method: round method, see Method.
        lazy: finish on the first source completion instead of waiting for all.
        initial: placeholder for snapshot slots and done records not filled yet.
        policy: CombinePolicy, overrides method and lazy.

    Example:
        async with Combine([ticks(), quotes()], method="race") as merged:
            async for value in merged:
                ...
    """

    def __init__(
        self,
        sources: Iterable[Source[T]],
        *,
        close: Iterable[Source[T]] | None = None,
        method: Method | str = Method.ALL,
        lazy: bool = False,
        initial: typing.Any = None,
        policy: CombinePolicy | None = None,
    ) -> None:
        super().__init__()
        if policy is None:
            policy = CombinePolicy(method=Method.parse(method), lazy=lazy)
        self._sources: list[Source[T]] = list(sources)
        owned = self._sources if close is None else list(close)
        owned_ids = {id(source) for source in owned}
        self._closing = {i for i, source in enumerate(self._sources) if id(source) in owned_ids}
        self._method = policy.method
        self._lazy = policy.lazy
        self._requests = Requests()
        self._active = list(range(len(self._sources)))
        self._values: Snapshot[typing.Any] = [initial] * len(self._sources)
        self._done_values: list[typing.Any] = [initial] * len(self._sources)

    @property
    def method(self) -> Method:
        return self._method

    @method.setter
    def method(self, method: Method | str) -> None:
        self._method = Method.parse(method)

    @property
    def values(self) -> Snapshot[typing.Any]:
        """Copy of the current snapshot."""
        return list(self._values)

    async def next(self, *args: typing.Any) -> Step[typing.Any]:
        """
        Advance one round.

        A single argument is forwarded unchanged to every request issued in
        this round (through `asend`, for sources that have it); sources still
        pending from an earlier round keep their original request. More than
        one argument raises TypeError before anything is issued.
        """
        if self._terminal is not None:
            return self._terminal
        args = forwarded(args)

        for index in self._active:
            if index not in self._requests:
                self._requests.issue(index, self._sources[index], args)
        if not self._requests:
            return await self.aclose(list(self._done_values))

        match self._method:
            case Method.ALL | Method.ALL_SETTLED:
                return await self._barrier()
            case Method.RACE | Method.ANY:
                return await self._race()
            case _ as unreachable:
                assert_never(unreachable)

    # Round resolution

    async def _barrier(self) -> Step[typing.Any]:
        settled = self._method is Method.ALL_SETTLED
        if settled:
            indices = await self._requests.settle_all()
        else:
            indices = await self._requests.settle_all_or_first_error()
        outcomes = self._requests.take(indices)

        if not settled and (failed := failures(outcomes)):
            for index, outcome in outcomes.items():
                match outcome:
                    case Ok(step) if step.done:
                        self._finish(index, step.value)
                    case _:
                        pass
            for index, error in failed.items():
                logger.debug("source %d failed: %r", index, error)
                self._forget(index)
            await self.aclose()
            raise next(iter(failed.values()))

        for index, outcome in outcomes.items():
            match outcome:
                case Ok(step) if step.done:
                    final = self._wrap(step.value)
                    self._finish(index, final)
                    if self._lazy:
                        return await self.aclose(final)
                case Ok(step):
                    self._values[index] = self._wrap(step.value)
                case Error(error):
                    # all_settled only: a rejected source is finished with its error
                    logger.debug("source %d rejected: %r", index, error)
                    self._forget(index)
                    self._values[index] = self._done_values[index] = Error(error)

        if not self._active:
            return await self.aclose(list(self._done_values))
        return Step(list(self._values))

    async def _race(self) -> Step[typing.Any]:
        errors: list[Exception] = []
        progressed = False
        while self._requests:
            index = await self._requests.first_settled()
            outcome = self._requests.take([index])[index]
            match outcome:
                case Ok(step) if step.done:
                    progressed = True
                    self._finish(index, step.value)
                    if self._lazy:
                        return await self.aclose(step.value)
                case Ok(step):
                    self._values[index] = step.value
                    return Step(step.value)
                case Error(error) if self._method is Method.ANY:
                    logger.debug("source %d rejected, still racing: %r", index, error)
                    self._forget(index)
                    errors.append(error)
                case Error(error):
                    logger.debug("source %d failed: %r", index, error)
                    self._forget(index)
                    await self.aclose()
                    raise error

        if errors and not progressed:
            await self.aclose()
            raise ExceptionGroup("every pending source failed", errors)
        return await self.aclose(list(self._done_values))

    # Bookkeeping

    def _wrap(self, value: typing.Any) -> Settled[typing.Any] | typing.Any:
        return Ok(value) if self._method is Method.ALL_SETTLED else value

    def _finish(self, index: int, final: typing.Any) -> None:
        """Record a completed source; it closed itself, so it leaves the closing set."""
        logger.debug("source %d finished", index)
        self._done_values[index] = final
        self._forget(index)

    def _forget(self, index: int) -> None:
        if index in self._active:
            self._active.remove(index)
        self._closing.discard(index)

    async def _release(self) -> None:
        owned = {index: self._sources[index] for index in sorted(self._closing)}
        self._closing.clear()
        try:
            await shutdown(self._requests, owned)
        finally:
            # requests left belong to sources another owner still reads from
            self._requests.detach()


__all__ = ("Combine",)
