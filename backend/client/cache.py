"""Short-lived read cache owned by the dashboard client."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30.0


@dataclass
class TimedCache(Generic[T]):
    """Holds one value for ``ttl`` seconds after it was fetched.

    Callers must :meth:`invalidate` after every mutation they perform; other
    clients' writes are only picked up once the entry expires.
    """

    ttl: float = DEFAULT_TTL_SECONDS
    data: Optional[T] = None
    fetched_at: Optional[float] = None
    clock: Callable[[], float] = time.monotonic

    def is_valid(self, now: Optional[float] = None) -> bool:
        if self.fetched_at is None:
            return False
        current = self.clock() if now is None else now
        return current - self.fetched_at < self.ttl

    def get(self) -> Optional[T]:
        return self.data if self.is_valid() else None

    def store(self, data: T, now: Optional[float] = None) -> T:
        self.data = data
        self.fetched_at = self.clock() if now is None else now
        return data

    def invalidate(self) -> None:
        self.data = None
        self.fetched_at = None
