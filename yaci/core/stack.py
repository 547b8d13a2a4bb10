"""
CallStack -- bounded LIFO of subroutine return addresses.
"""

from __future__ import annotations

from typing import List, Sequence

from yaci.core.errors import StackOverflow, StackUnderflow


class CallStack:
    """Return-address stack with a fixed capacity (16 on CHIP-8)."""

    CAPACITY: int = 16

    def __init__(self, capacity: int = CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity: int = capacity
        self._frames: List[int] = []

    def push(self, addr: int) -> None:
        """Push a return address.

        Raises:
            StackOverflow: If the stack already holds :attr:`capacity` entries.
        """
        if len(self._frames) >= self.capacity:
            raise StackOverflow(
                f"Call stack overflow (depth {self.capacity})"
            )
        self._frames.append(addr & 0xFFFF)

    def pop(self) -> int:
        """Pop the most recent return address.

        Raises:
            StackUnderflow: If the stack is empty.
        """
        if not self._frames:
            raise StackUnderflow("Return with an empty call stack")
        return self._frames.pop()

    def clear(self) -> None:
        self._frames.clear()

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def full(self) -> bool:
        return len(self._frames) >= self.capacity

    def frames(self) -> List[int]:
        """Copy of the stack contents, bottom first."""
        return list(self._frames)

    def restore(self, frames: Sequence[int]) -> None:
        if len(frames) > self.capacity:
            raise ValueError(
                f"Snapshot stack depth {len(frames)} exceeds capacity {self.capacity}"
            )
        self._frames = [f & 0xFFFF for f in frames]

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self) -> str:
        return f"CallStack(depth={len(self._frames)}, capacity={self.capacity})"
