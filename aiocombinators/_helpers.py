"""Internal helpers for combinators.

Pending-request bookkeeping and source shutdown shared by the engine and
the standalone streams. Not part of the public API."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import typing
from collections.abc import Iterator, Mapping

from kungfu import Error, Ok, Result

from ._base import Step
from ._types import Source

logger = logging.getLogger(__name__)

# Outcome of one request task: the Step it produced, or what the source raised
type Outcome = Result[Step[typing.Any], Exception]


def forwarded(args: tuple[typing.Any, ...]) -> tuple[typing.Any, ...]:
    """Check consumer arguments before any request is issued: asend takes one value."""
    if len(args) > 1:
        raise TypeError(f"next() forwards at most one argument to sources, got {len(args)}")
    return args


def _accepts(source: Source[typing.Any]) -> typing.Any:
    """Return the source's `asend`, or None when the argument must be dropped."""
    asend = getattr(source, "asend", None)
    # a just-created async generator only accepts None
    if inspect.isasyncgen(source) and inspect.getasyncgenstate(source) == inspect.AGEN_CREATED:
        return None
    return asend


async def pull[T](source: Source[T], args: tuple[typing.Any, ...] = ()) -> Step[typing.Any]:
    """
    Await a single request on `source`.

    A consumer argument goes through `asend` when the source has one;
    sources without `asend` are advanced with `anext` and never see it.
    Completion becomes a done Step carrying StopAsyncIteration's value.
    """
    try:
        if args and (asend := _accepts(source)) is not None:
            value = await asend(*args)
        else:
            value = await anext(source)
    except StopAsyncIteration as stop:
        return Step(stop.args[0] if stop.args else None, done=True)
    return Step(value)


def settle(task: asyncio.Task[Step[typing.Any]]) -> Outcome:
    """Read a finished request task as Ok(step) / Error(exception)."""
    error = task.exception()
    if error is not None:
        return Error(typing.cast(Exception, error))
    return Ok(task.result())


def failures(outcomes: Mapping[int, Outcome]) -> dict[int, Exception]:
    """Pick rejected requests, keeping index order."""
    found: dict[int, Exception] = {}
    for index, outcome in outcomes.items():
        match outcome:
            case Error(error):
                found[index] = error
            case Ok(_):
                pass
    return found


# Detached requests, kept referenced until they settle
_detached: set[asyncio.Task[Step[typing.Any]]] = set()


def _forget_detached(index: int, task: asyncio.Task[Step[typing.Any]]) -> None:
    _detached.discard(task)
    if task.cancelled():
        return
    match settle(task):
        case Error(error):
            logger.debug("detached request for source %d failed: %r", index, error)
        case Ok(_):
            logger.debug("detached request for source %d settled, value dropped", index)


class Requests:
    """
    Outstanding requests keyed by source index, in issuance order.

    At most one request per source: issuing for an index that still has one
    is a bug in the caller.
    """

    __slots__ = ("_tasks",)

    def __init__(self) -> None:
        self._tasks: dict[int, asyncio.Task[Step[typing.Any]]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, index: object) -> bool:
        return index in self._tasks

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._tasks))

    def issue(self, index: int, source: Source[typing.Any], args: tuple[typing.Any, ...] = ()) -> None:
        if index in self._tasks:
            raise RuntimeError(f"source {index} already has a pending request")
        self._tasks[index] = asyncio.create_task(pull(source, args))

    def pop(self, index: int) -> asyncio.Task[Step[typing.Any]]:
        return self._tasks.pop(index)

    def take(self, indices: list[int]) -> dict[int, Outcome]:
        """Remove settled requests and read their outcomes, in the given order."""
        return {index: settle(self._tasks.pop(index)) for index in indices}

    def detach(self) -> None:
        """
        Let go of every outstanding request without cancelling it.

        Used for sources another owner still reads from: the request keeps
        running and its value is consumed, but its outcome is still read so
        a failure is logged instead of reported as never retrieved.
        """
        for index in list(self._tasks):
            task = self._tasks.pop(index)
            _detached.add(task)
            task.add_done_callback(functools.partial(_forget_detached, index))

    async def first_settled(self) -> int:
        """Wait for any request to settle; return the earliest-issued settled index."""
        await asyncio.wait(self._tasks.values(), return_when=asyncio.FIRST_COMPLETED)
        return next(index for index, task in self._tasks.items() if task.done())

    async def settle_all(self) -> list[int]:
        """Barrier: wait for every request, return indices in source order."""
        await asyncio.wait(self._tasks.values(), return_when=asyncio.ALL_COMPLETED)
        return sorted(self._tasks)

    async def settle_all_or_first_error(self) -> list[int]:
        """Barrier that gives up on the first rejection; returns settled indices only."""
        await asyncio.wait(self._tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
        return sorted(index for index, task in self._tasks.items() if task.done())


async def shutdown(requests: Requests, sources: Mapping[int, Source[typing.Any]]) -> None:
    """
    Cancel outstanding requests of `sources`, then aclose() each of them once.

    A request still running inside an async generator must be cancelled first:
    aclose() on a running generator raises RuntimeError.
    Every source is dispatched even when one of them fails to close;
    the first failure is raised afterwards.
    """
    cancelled = [requests.pop(index) for index in sources if index in requests]
    for task in cancelled:
        task.cancel()
    if cancelled:
        await asyncio.gather(*cancelled, return_exceptions=True)

    closers = [
        aclose()
        for source in sources.values()
        if (aclose := getattr(source, "aclose", None)) is not None
    ]
    logger.debug("closing %d source(s), %d request(s) cancelled", len(closers), len(cancelled))
    results = await asyncio.gather(*closers, return_exceptions=True)

    errors = [result for result in results if isinstance(result, Exception)]
    for error in errors:
        logger.warning("source failed to close: %r", error)
    if errors:
        raise errors[0]


__all__ = (
    "Outcome",
    "Requests",
    "failures",
    "forwarded",
    "pull",
    "settle",
    "shutdown",
)
