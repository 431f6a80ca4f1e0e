"""Bounded FIFO history for the recent-activity feeds."""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

HISTORY_CAPACITY = 500


class HistoryBuffer(Generic[T]):
    """Ring buffer in ingestion order: oldest at the head, newest at the tail."""

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def append(self, item: T) -> None:
        self._items.append(item)

    def latest(self, n: int) -> list[T]:
        """The newest ``n`` entries, newest first."""
        return list(islice(reversed(self._items), n))
