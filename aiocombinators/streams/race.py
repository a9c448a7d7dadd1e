"""
Race stream
===========

Непрерывная гонка между источниками.

Every live source always has exactly one request outstanding: the moment a
source yields, it is asked again, so sources keep running while the consumer
handles the winner.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Iterable
from dataclasses import dataclass

from kungfu import Error, Ok

from .._base import Combinator, Step
from .._helpers import Requests, shutdown
from .._types import Snapshot, Source

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RacePolicy:
    """
    Configuration for race.

    combine: yield the snapshot of latest values instead of the winner.
    lazy: finish on the first source completion.
    eager: with combine, yield from the first win instead of waiting until
        every source produced once.
    with_index: yield (output, source_index) pairs.
    """

    combine: bool = False
    lazy: bool = False
    eager: bool = True
    with_index: bool = False


class RaceStream[T](Combinator[typing.Any]):
    """Continuously re-armed race. Build with `race()`."""

    def __init__(
        self,
        sources: Iterable[Source[T]],
        *,
        policy: RacePolicy = RacePolicy(),
        initial: typing.Any = None,
    ) -> None:
        super().__init__()
        self._sources: list[Source[T]] = list(sources)
        self._policy = policy
        self._requests = Requests()
        self._armed = False
        self._values: Snapshot[typing.Any] = [initial] * len(self._sources)
        self._done_values: list[typing.Any] = [initial] * len(self._sources)
        self._waiting = set(range(len(self._sources)))
        self._last: typing.Any = None

    async def next(self, *args: typing.Any) -> Step[typing.Any]:
        """
        Wait for the next winner.

        Requests are issued proactively, so `args` are not forwarded.
        """
        if self._terminal is not None:
            return self._terminal
        if not self._armed:
            self._armed = True
            for index, source in enumerate(self._sources):
                self._requests.issue(index, source)

        policy = self._policy
        while self._requests:
            index = await self._requests.first_settled()
            match self._requests.take([index])[index]:
                case Ok(step) if step.done:
                    logger.debug("source %d finished", index)
                    self._done_values[index] = step.value
                    if policy.lazy:
                        return await self.aclose(self._result(step.value))
                    self._last = step.value
                case Ok(step):
                    self._requests.issue(index, self._sources[index])
                    self._values[index] = step.value
                    self._waiting.discard(index)
                    if not policy.combine:
                        return self._emit(step.value, index)
                    if policy.eager or not self._waiting:
                        return self._emit(list(self._values), index)
                case Error(error):
                    logger.debug("source %d failed: %r", index, error)
                    await self.aclose()
                    raise error

        return await self.aclose(self._result(self._last))

    def _emit(self, output: typing.Any, index: int) -> Step[typing.Any]:
        if self._policy.with_index:
            return Step((output, index))
        return Step(output)

    def _result(self, last: typing.Any) -> typing.Any:
        if self._policy.combine:
            return list(self._done_values)
        return last

    async def _release(self) -> None:
        # Only sources with a request in flight are still live
        live = {index: self._sources[index] for index in self._requests}
        await shutdown(self._requests, live)


def race[T](
    sources: Iterable[Source[T]],
    *,
    combine: bool = False,
    lazy: bool = False,
    eager: bool = True,
    with_index: bool = False,
    initial: typing.Any = None,
    policy: RacePolicy | None = None,
) -> RaceStream[T]:
    """
    Race sources continuously.

    Yields every value in arrival order (or the latest-values snapshot with
    `combine=True`). Finishes with the last completion value, or with the list
    of completion values when combining.
    """
    if policy is None:
        policy = RacePolicy(combine=combine, lazy=lazy, eager=eager, with_index=with_index)
    return RaceStream(sources, policy=policy, initial=initial)


__all__ = ("RacePolicy", "RaceStream", "race")
