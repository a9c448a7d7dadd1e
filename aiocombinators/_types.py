"""
Core type definitions for aiocombinators.

Типы и алиасы используемые по всей библиотеке.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from kungfu import Result

# ============================================================================
# Type aliases
# ============================================================================

# Source = anything honoring the async iterator protocol.
# Completion value travels in StopAsyncIteration.args[0].
type Source[T] = AsyncIterator[T]

# Snapshot = one slot per source, latest observed value (or the placeholder)
type Snapshot[T] = list[T]

# Settled = descriptor of one settled request (all_settled method)
# NOTE: Ok(value) is "fulfilled", Error(exc) is "rejected".
type Settled[T] = Result[T, Exception]

__all__ = (
    "Settled",
    "Snapshot",
    "Source",
)
