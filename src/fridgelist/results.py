"""Success/failure carrier returned across component boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from fridgelist.errors import FridgelistError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a gateway, cache or engine operation.

    Exactly one of ``value`` and ``error`` is meaningful: a result is a failure when
    ``error`` is set, a success otherwise (``value`` may legitimately be ``None``).
    """

    value: Optional[T] = None
    error: Optional[FridgelistError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FridgelistError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def map(self, func: Callable[[T], U]) -> "Result[U]":
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=func(self.value))  # type: ignore[arg-type]


__all__ = ["Result"]
