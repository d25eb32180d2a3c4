"""Bounded byte FIFO.

Not thread-safe on its own; the flow controller serializes access to
every instance it owns.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

DEFAULT_DEPTH = 256


class ByteFifo:
    """Fixed-capacity ordered byte queue.

    Occupancy is always within ``[0, depth]``. Pushing into a full FIFO
    drops the byte; popping an empty one yields ``None``.
    """

    def __init__(self, depth: int = DEFAULT_DEPTH) -> None:
        if depth < 1:
            raise ValueError(f"FIFO depth must be positive, got {depth}")
        self._depth = depth
        self._data: deque[int] = deque()

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def count(self) -> int:
        return len(self._data)

    @property
    def free(self) -> int:
        return self._depth - len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def push(self, byte: int) -> bool:
        """Append one byte. Returns False (byte dropped) when full."""
        if len(self._data) >= self._depth:
            return False
        self._data.append(byte & 0xFF)
        return True

    def extend(self, data: Iterable[int]) -> bool:
        """Append all of ``data`` or nothing at all."""
        data = bytes(data)
        if len(data) > self.free:
            return False
        self._data.extend(data)
        return True

    def pop(self) -> int | None:
        """Remove and return the oldest byte, or None when empty."""
        if not self._data:
            return None
        return self._data.popleft()

    def clear(self) -> int:
        """Discard everything queued. Returns the number of bytes dropped."""
        dropped = len(self._data)
        self._data.clear()
        return dropped

    def snapshot(self) -> bytes:
        """Current contents, oldest first, without consuming them."""
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"ByteFifo(count={self.count}, depth={self._depth})"
