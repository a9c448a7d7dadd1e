"""
Collect
=======

Drive a combinator to completion and lift the outcome into LazyCoroResult.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Ok, Result

from ._base import Combinator


@dataclass(frozen=True, slots=True)
class Collected[T]:
    """Everything a combinator yielded, plus its terminal value."""

    items: list[T]
    result: typing.Any


def collect[T](combinator: Combinator[T]) -> LazyCoroResult[Collected[T], Exception]:
    """
    Lazily drain `combinator`.

    Ok(Collected) when it finishes, Error(exc) when a step raised.
    The combinator is closed either way.

    Example:
        match await collect(barrier([a(), b()])):
            case Ok(Collected(items, result)): ...
            case Error(e): ...
    """

    async def run() -> Result[Collected[T], Exception]:
        items: list[T] = []
        try:
            while True:
                step = await combinator.next()
                if step.done:
                    return Ok(Collected(items, step.value))
                items.append(step.value)
        except Exception as e:
            return Error(e)
        finally:
            await combinator.aclose()

    return LazyCoroResult(run)


__all__ = ("Collected", "collect")
