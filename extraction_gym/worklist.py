"""A first-in first-out queue that holds each element at most once."""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable
from typing import Generic, TypeVar

T = TypeVar("T", bound=Hashable)


class UniqueQueue(Generic[T]):
    """FIFO queue ignoring inserts of elements already waiting in it."""

    def __init__(self) -> None:
        self._members: set[T] = set()
        self._queue: deque[T] = deque()

    def insert(self, item: T) -> None:
        if item not in self._members:
            self._members.add(item)
            self._queue.append(item)

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.insert(item)

    def pop(self) -> T:
        """Remove and return the oldest element; IndexError when empty."""
        item = self._queue.popleft()
        self._members.discard(item)
        return item

    def is_empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)