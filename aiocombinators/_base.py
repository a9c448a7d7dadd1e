"""
Step protocol
=============

Общий протокол для всех комбинаторов: next / aclose / athrow.

Every combinator is simultaneously the sequence and its own cursor.
`next()` returns a Step, `aclose()` closes exactly once and replays the
closing Step afterwards, `athrow()` closes and re-raises.
"""

from __future__ import annotations

import abc
import typing
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Step[T]:
    """One protocol result: a yielded value, or the terminal value when done."""

    value: T
    done: bool = False


class Combinator[T](abc.ABC):
    """
    Base for every combinator.

    Subclasses implement `next()` and `_release()`. Closing is monotonic:
    the first `aclose()` caches the terminal Step and dispatches cleanup,
    every later protocol call replays that Step without side effects.
    """

    def __init__(self) -> None:
        self._terminal: Step[typing.Any] | None = None

    @property
    def closed(self) -> bool:
        return self._terminal is not None

    @abc.abstractmethod
    async def next(self, *args: typing.Any) -> Step[typing.Any]:
        """Advance one round."""

    @abc.abstractmethod
    async def _release(self) -> None:
        """Dispatch cleanup to every source this combinator is responsible for."""

    async def aclose(self, value: typing.Any = None) -> Step[typing.Any]:
        """Close once. Later calls return the first terminal Step unchanged."""
        if self._terminal is not None:
            return self._terminal
        self._terminal = Step(value, done=True)
        await self._release()
        return self._terminal

    async def athrow(self, error: BaseException) -> typing.NoReturn:
        """Close, then raise `error`. The error is never swallowed."""
        await self.aclose()
        raise error

    # Protocol methods

    def __aiter__(self) -> typing.Self:
        return self

    async def __anext__(self) -> T:
        step = await self.next()
        if step.done:
            raise StopAsyncIteration(step.value)
        return step.value

    async def __aenter__(self) -> typing.Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ("Combinator", "Step")
