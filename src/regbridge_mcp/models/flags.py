"""Sticky status flags."""

from __future__ import annotations

from ..protocol.commands import STICKY_FLAGS, StatusFlag


class StickyFlags:
    """OR-latched flag set.

    Bits are only ever set by :meth:`set` and only ever cleared by
    :meth:`clear`. Reading never changes them. Callers that share an
    instance across threads hold the owner's lock.
    """

    def __init__(self) -> None:
        self._bits = StatusFlag(0)

    @property
    def value(self) -> StatusFlag:
        return self._bits

    def set(self, flag: StatusFlag) -> None:
        if flag & ~STICKY_FLAGS:
            raise ValueError(f"{flag!r} is not a sticky flag")
        self._bits |= flag

    def clear(self) -> None:
        self._bits = StatusFlag(0)

    def __contains__(self, flag: StatusFlag) -> bool:
        return bool(self._bits & flag)

    def __int__(self) -> int:
        return int(self._bits)

    def __repr__(self) -> str:
        return f"StickyFlags({self._bits!r})"
