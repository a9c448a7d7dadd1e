from .barrier import BarrierStream, barrier
from .race import RacePolicy, RaceStream, race

__all__ = (
    # Policies
    "RacePolicy",
    # Barrier
    "BarrierStream",
    "barrier",
    # Race
    "RaceStream",
    "race",
)
