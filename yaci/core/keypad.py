"""
Keypad -- state of the 16-key hexadecimal input pad.

Host code writes key state through :meth:`Keypad.set_key` or
:meth:`Keypad.set_all`; the engine reads it through :meth:`Keypad.is_pressed`.

The wait-for-key instruction (FX0A) needs *events* rather than levels: a key
that was already held when the wait began does not satisfy it.  The keypad
therefore keeps a small press latch.  :meth:`arm` starts listening,
every released-to-pressed transition while armed is queued, and
:meth:`take_press` hands the oldest one to the engine and disarms.

Index layout of the original COSMAC VIP pad::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Sequence

KEY_COUNT: int = 16


class Keypad:
    """Sixteen boolean key states plus the FX0A press latch."""

    def __init__(self) -> None:
        self._keys: List[bool] = [False] * KEY_COUNT
        self._armed: bool = False
        self._presses: Deque[int] = deque()

    # ------------------------------------------------------------------
    # Host-side updates
    # ------------------------------------------------------------------

    def set_key(self, index: int, pressed: bool) -> None:
        """Set key *index* (0-15) pressed or released.

        Raises:
            ValueError: If *index* is not a valid key.
        """
        if not 0 <= index < KEY_COUNT:
            raise ValueError(f"Key index must be in 0..15, got {index}")
        was_pressed = self._keys[index]
        self._keys[index] = bool(pressed)
        if pressed and not was_pressed and self._armed:
            self._presses.append(index)

    def set_all(self, states: Sequence[bool]) -> None:
        """Replace all 16 key states at once.

        Raises:
            ValueError: If *states* does not hold exactly 16 values.
        """
        if len(states) != KEY_COUNT:
            raise ValueError(
                f"Expected {KEY_COUNT} key states, got {len(states)}"
            )
        for index, pressed in enumerate(states):
            self.set_key(index, pressed)

    def release_all(self) -> None:
        for index in range(KEY_COUNT):
            self._keys[index] = False

    # ------------------------------------------------------------------
    # Engine-side reads
    # ------------------------------------------------------------------

    def is_pressed(self, index: int) -> bool:
        # Only the low nibble selects a key; VX may hold any byte.
        return self._keys[index & 0xF]

    # ------------------------------------------------------------------
    # FX0A press latch
    # ------------------------------------------------------------------

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self) -> None:
        """Start collecting key-press events, discarding any stale ones."""
        self._presses.clear()
        self._armed = True

    def disarm(self) -> None:
        self._presses.clear()
        self._armed = False

    def take_press(self) -> Optional[int]:
        """Return the oldest queued press and disarm, or ``None``."""
        if not self._presses:
            return None
        key = self._presses.popleft()
        self.disarm()
        return key

    def reset(self) -> None:
        self.release_all()
        self.disarm()

    def __repr__(self) -> str:
        held = [f"{i:X}" for i, down in enumerate(self._keys) if down]
        return f"Keypad(held=[{', '.join(held)}], armed={self._armed})"
