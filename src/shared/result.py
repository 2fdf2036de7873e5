"""Success-or-failure wrapper for store reads that must never break a page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from src.core.exceptions import StoreError

T = TypeVar("T")


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    value: T | None = None
    error: StoreError | None = None

    @classmethod
    def success(cls, value: T) -> StoreResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: StoreError) -> StoreResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
