"""
Combination policies
====================

Как ждать раунд: барьер (all / all_settled) или гонка (race / any).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .._errors import UnknownMethodError


class Method(enum.Enum):
    """How the pending requests of one round are awaited."""

    ALL = "all"
    ALL_SETTLED = "all_settled"
    RACE = "race"
    ANY = "any"

    @classmethod
    def parse(cls, value: Method | str) -> Method:
        if isinstance(value, Method):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownMethodError(value) from None


@dataclass(frozen=True, slots=True)
class CombinePolicy:
    """Configuration for Combine: round method and lazy completion."""

    method: Method = Method.ALL
    lazy: bool = False

    def __post_init__(self) -> None:
        # Accept "race" etc. as well as Method members
        object.__setattr__(self, "method", Method.parse(self.method))


__all__ = ("CombinePolicy", "Method")
