"""
CombineLatest
=============

Latest-values snapshot over several sources.

First round is a barrier (every source produced at least once), all later
rounds are races: one fresh value is enough for a new snapshot, the other
slots keep their previous value. `eager=True` skips the initial barrier.
"""

from __future__ import annotations

import typing
from collections.abc import Iterable

from .._base import Step
from .._types import Source
from .combine import Combine
from .policy import Method


class CombineLatest[T](Combine[T]):
    """Combine that always yields the full snapshot, switching from barrier to race."""

    def __init__(
        self,
        sources: Iterable[Source[T]],
        *,
        eager: bool = False,
        close: Iterable[Source[T]] | None = None,
        lazy: bool = False,
        initial: typing.Any = None,
    ) -> None:
        super().__init__(
            sources,
            close=close,
            method=Method.RACE if eager else Method.ALL,
            lazy=lazy,
            initial=initial,
        )

    async def next(self, *args: typing.Any) -> Step[typing.Any]:
        step = await super().next(*args)
        if self.method is Method.ALL:
            self.method = Method.RACE
        if step.done:
            return step
        return Step(self.values)


__all__ = ("CombineLatest",)
