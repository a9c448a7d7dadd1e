from .combine import Combine
from .latest import CombineLatest
from .policy import CombinePolicy, Method

__all__ = (
    # Policies
    "CombinePolicy",
    "Method",
    # Engine
    "Combine",
    "CombineLatest",
)
