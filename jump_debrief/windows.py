from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Iterator, Optional, Tuple, TypeVar

import numpy as np

T = TypeVar("T")
U = TypeVar("U")


# -----------------------------
# Bounded FIFO buffer
# -----------------------------
class BoundedBuffer(Generic[T]):
    """
    Fixed-capacity FIFO queue. Immutable: every push returns a new buffer.

    Once `size` elements are held, each push evicts the oldest one.
    """

    __slots__ = ("size", "_items")

    def __init__(self, size: int, items: Tuple[T, ...] = ()):
        if size < 1:
            raise ValueError(f"Buffer size must be >= 1, got {size}")
        self.size = size
        self._items = tuple(items)[-size:]

    def push(self, x: T) -> Tuple[Optional[T], BoundedBuffer[T]]:
        if len(self._items) < self.size:
            return None, BoundedBuffer(self.size, self._items + (x,))
        return self._items[0], BoundedBuffer(self.size, self._items[1:] + (x,))

    def push_map(self, x: T, f: Callable[[T], U]) -> Tuple[Optional[U], BoundedBuffer[T]]:
        evicted, nxt = self.push(x)
        return (f(evicted) if evicted is not None else None), nxt

    def enqueue(self, x: T) -> BoundedBuffer[T]:
        return self.push(x)[1]

    def set_size(self, n: int) -> BoundedBuffer[T]:
        # Shrinking keeps the newest n elements
        return BoundedBuffer(n, self._items)

    def oldest(self, n: Optional[int] = None):
        if n is not None:
            return self._items[:max(n, 0)]
        return self._items[0] if self._items else None

    def newest(self, n: Optional[int] = None):
        if n is not None:
            return self._items[max(len(self._items) - n, 0):] if n > 0 else ()
        return self._items[-1] if self._items else None

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def is_full(self) -> bool:
        return len(self._items) == self.size

    def to_array(self) -> np.ndarray:
        return np.asarray(self._items, dtype=float)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, i: int) -> T:
        return self._items[i]

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, BoundedBuffer) and (self.size, self._items) == (other.size, other._items)

    def __repr__(self) -> str:
        return f"BoundedBuffer(size={self.size}, items={list(self._items)!r})"


# -----------------------------
# Focus window
# -----------------------------
@dataclass(frozen=True)
class FocusWindow(Generic[T]):
    """
    Fixed-capacity window with an edit cursor.

    While filling (fewer than `capacity` items) a push only appends. Once
    filled, a push evicts the oldest item and the cursor stays where it was,
    so the element under it is the next one to slide in. Editing (focus_at,
    modify_focus) is only allowed on a filled window.
    """
    capacity: int
    items: Tuple[T, ...] = ()
    cursor: int = 0

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError(f"Window capacity must be >= 1, got {self.capacity}")
        if len(self.items) > self.capacity:
            raise ValueError(f"Window holds {len(self.items)} items, capacity is {self.capacity}")

    @property
    def is_filled(self) -> bool:
        return len(self.items) == self.capacity

    def push(self, x: T) -> Tuple[Optional[T], FocusWindow[T]]:
        if not self.is_filled:
            items = self.items + (x,)
            cursor = len(items) - 1 if len(items) == self.capacity else self.cursor
            return None, replace(self, items=items, cursor=cursor)
        return self.items[0], replace(self, items=self.items[1:] + (x,))

    def oldest(self) -> T:
        if not self.items:
            raise ValueError("oldest() on an empty window")
        return self.items[0]

    def newest(self) -> T:
        if not self.items:
            raise ValueError("newest() on an empty window")
        return self.items[-1]

    @property
    def focus(self) -> T:
        self._require_filled("focus")
        return self.items[self.cursor]

    def focus_at(self, i: int) -> FocusWindow[T]:
        self._require_filled("focus_at")
        return replace(self, cursor=min(max(i, 0), self.capacity - 1))

    def modify_focus(self, f: Callable[[T], T]) -> FocusWindow[T]:
        self._require_filled("modify_focus")
        items = list(self.items)
        items[self.cursor] = f(items[self.cursor])
        return replace(self, items=tuple(items))

    def _require_filled(self, op: str) -> None:
        if not self.is_filled:
            raise ValueError(f"{op} needs a filled window ({len(self.items)}/{self.capacity})")

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)
