from __future__ import annotations


class UnknownMethodError(ValueError):
    """Combination method name is not one of all / all_settled / race / any."""

    method: str

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Unknown combination method: {method!r}")


__all__ = ("UnknownMethodError",)
