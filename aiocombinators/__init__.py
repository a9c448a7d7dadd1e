"""
Async iterator combinators.

Merge several independent async iterators into one, round after round:
wait-for-all, settle-all, race and any, generalized from one-shot awaitables
to repeatedly pulled sequences.

Architecture:
- Combine: pull-driven engine, one request per source, Method per round
- CombineLatest: barrier first, race afterwards, always the full snapshot
- race / barrier: standalone streams (continuous race, round barrier)
- collect: drain any combinator into a LazyCoroResult
"""

# Core types
from ._base import Combinator, Step
from ._types import Settled, Snapshot, Source

# Engine
from .engine import Combine, CombineLatest, CombinePolicy, Method

# Streams
from .streams import BarrierStream, RacePolicy, RaceStream, barrier, race

# Draining
from .collect import Collected, collect

# Errors
from ._errors import UnknownMethodError

__all__ = (
    # Types
    "Combinator",
    "Settled",
    "Snapshot",
    "Source",
    "Step",
    # Engine
    "Combine",
    "CombineLatest",
    "CombinePolicy",
    "Method",
    # Streams
    "BarrierStream",
    "RacePolicy",
    "RaceStream",
    "barrier",
    "race",
    # Draining
    "Collected",
    "collect",
    # Errors
    "UnknownMethodError",
)
