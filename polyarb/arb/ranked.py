"""
Capacity-bounded ranked list keyed by identity.

Used for the near-miss and live-market feeds: upserting an item replaces any
entry with the same identity, places it in rank order, and drops whatever
falls off the tail.
"""

from bisect import bisect_right
from typing import Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class RankedList(Generic[T]):
    """
    Sorted, capacity-bounded container with keyed upsert.

    Items with equal rank keep insertion order (a newcomer goes after its
    equals). With descending=True the largest rank comes first.
    """

    def __init__(
        self,
        capacity: int,
        rank: Callable[[T], float],
        identity: Callable[[T], str],
        descending: bool = False,
    ):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._rank = rank
        self._identity = identity
        self._descending = descending
        self._items: list[T] = []
        self._keys: list[float] = []

    def _sort_key(self, item: T) -> float:
        value = self._rank(item)
        return -value if self._descending else value

    def upsert(self, item: T) -> bool:
        """
        Insert or replace an item.

        Returns:
            True if the item is still present after tail eviction
        """
        self.remove(self._identity(item))

        key = self._sort_key(item)
        index = bisect_right(self._keys, key)
        self._keys.insert(index, key)
        self._items.insert(index, item)

        del self._items[self.capacity:]
        del self._keys[self.capacity:]
        return index < self.capacity

    def remove(self, identity: str) -> Optional[T]:
        """Remove and return the item with this identity, if present."""
        for index, existing in enumerate(self._items):
            if self._identity(existing) == identity:
                del self._keys[index]
                return self._items.pop(index)
        return None

    def get(self, identity: str) -> Optional[T]:
        for item in self._items:
            if self._identity(item) == identity:
                return item
        return None

    def clear(self) -> None:
        self._items.clear()
        self._keys.clear()

    def items(self, limit: Optional[int] = None) -> list[T]:
        """Snapshot of the items in rank order."""
        if limit is None:
            return list(self._items)
        return self._items[:limit]

    def __contains__(self, identity: object) -> bool:
        return any(self._identity(item) == identity for item in self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
