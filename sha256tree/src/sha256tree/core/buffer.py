"""Bounded ranges, clamped cursors and fixed-capacity byte buffers.

A ``Span`` is an ordered half-open range ``[begin, end)``. ``begin == end``
means an empty range, ``end == begin + 1`` a single position. A ``Cursor``
walks a span and never leaves ``[begin, end]``; reaching ``end`` means eof.
"""

from __future__ import annotations

from typing import Iterable


class BoundsError(IndexError):
    """Raised when an access falls outside a bounded range."""


class Span:
    __slots__ = ("_begin", "_end")

    def __init__(self, begin: int, end: int) -> None:
        self._begin = min(begin, end)
        self._end = max(begin, end)

    @property
    def begin(self) -> int:
        return self._begin

    @property
    def end(self) -> int:
        return self._end

    def count(self) -> int:
        return self._end - self._begin

    def limit(self, index: int) -> int:
        return max(self._begin, min(index, self._end))

    def contains(self, index: int) -> bool:
        return self._begin <= index < self._end

    def require(self, index: int) -> int:
        if not self.contains(index):
            raise BoundsError(f"index {index} outside [{self._begin}, {self._end})")
        return index

    def __len__(self) -> int:
        return self.count()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return (self._begin, self._end) == (other._begin, other._end)

    def __hash__(self) -> int:
        return hash((self._begin, self._end))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._begin}, {self._end})"


class Cursor(Span):
    """Mutable position within a span, clamped to ``[begin, end]``."""

    __slots__ = ("_position",)

    def __init__(self, begin: int, end: int) -> None:
        super().__init__(begin, end)
        self._position = self._begin

    @classmethod
    def over(cls, span: Span) -> "Cursor":
        return cls(span.begin, span.end)

    def current(self) -> int:
        return self.limit(self._position)

    def eof(self) -> bool:
        return self._position >= self._end

    def advance(self, count: int = 1) -> int:
        if not self.eof():
            self._position = self.limit(self._position + count)
        return self._position

    def next(self) -> int:
        position = self.current()
        if not self.eof():
            self._position += 1
        return position

    def reset(self, offset: int = 0) -> None:
        self._position = self.limit(self._begin + offset)

    def consumed(self) -> int:
        return self.current() - self._begin

    def remaining(self) -> int:
        return self._end - self.current()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._begin}, {self._end}, at={self._position})"


class ByteBuffer:
    """Fixed-capacity byte storage with bound-checked access.

    Writes go through an internal cursor; ``reader()`` exposes the written
    prefix as a read-only ``memoryview`` without copying. Any access outside
    ``[0, capacity)`` raises ``BoundsError``.
    """

    __slots__ = ("_data", "_span", "_cursor")

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self._data = bytearray(capacity)
        self._span = Span(0, capacity)
        self._cursor = Cursor.over(self._span)

    @property
    def capacity(self) -> int:
        return self._span.count()

    @property
    def written(self) -> int:
        return self._cursor.consumed()

    def __len__(self) -> int:
        return self.capacity

    def __getitem__(self, index: int) -> int:
        return self._data[self._span.require(index)]

    def __setitem__(self, index: int, value: int) -> None:
        self._data[self._span.require(index)] = value

    def view(self, start: int = 0, end: int | None = None) -> memoryview:
        stop = self._span.end if end is None else self._span.limit(end)
        first = self._span.limit(start)
        return memoryview(self._data)[first:max(first, stop)].toreadonly()

    def reader(self) -> memoryview:
        return self.view(0, self._cursor.current())

    def put(self, value: int) -> None:
        if self._cursor.eof():
            raise BoundsError(f"buffer full at capacity {self.capacity}")
        self._data[self._cursor.next()] = value

    def write(self, data: Iterable[int]) -> int:
        count = 0
        for value in data:
            self.put(value)
            count += 1
        return count

    def clear(self) -> None:
        self._data[:] = bytes(self.capacity)
        self._cursor.reset()

    def __repr__(self) -> str:
        return f"ByteBuffer(capacity={self.capacity}, written={self.written})"
