"""
Input handler for YACI.
Maps keyboard keys to the 16-key hexadecimal pad.

Keyboard layout
---------------

The left-hand block of a QWERTY keyboard stands in for the COSMAC VIP pad::

    Keyboard        CHIP-8 pad
    1 2 3 4         1 2 3 C
    Q W E R         4 5 6 D
    A S D F         7 8 9 E
    Z X C V         A 0 B F

The arrow keys are mapped as well (Up -> 2, Left -> 4, Down -> 5,
Right -> 6), which covers the usual movement keys of most games.

===================  ==========================
Key                  Action
===================  ==========================
Escape               Quit
P                    Pause / resume
F5                   Reset the machine
===================  ==========================
"""

from __future__ import annotations

import logging

import pygame

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Keyboard -> pad key mappings
# ---------------------------------------------------------------------------

_KEY_MAP: dict[int, int] = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,

    # -- Arrow keys ----------------------------------------------------------
    pygame.K_UP:    0x2,
    pygame.K_LEFT:  0x4,
    pygame.K_DOWN:  0x5,
    pygame.K_RIGHT: 0x6,
}


class InputHandler:
    """Translates pygame keyboard events into keypad updates.

    Parameters
    ----------
    machine:
        The emulated machine.  Expected interface:

        * ``set_key(index: int, pressed: bool)``
    """

    def __init__(self, machine: object) -> None:
        self._machine = machine
        self._quit_requested: bool = False
        self._pause_toggled: bool = False
        self._reset_requested: bool = False

        # Two host keys may map to the same pad key (e.g. W and Up); the pad
        # key stays down while any of them is held.
        self._held: dict[int, set[int]] = {}

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def take_pause_toggle(self) -> bool:
        """Return and clear the pending pause toggle."""
        toggled, self._pause_toggled = self._pause_toggled, False
        return toggled

    def take_reset_request(self) -> bool:
        """Return and clear the pending reset request."""
        requested, self._reset_requested = self._reset_requested, False
        return requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events.

        This should be called once at the top of each frame.
        """
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
        elif event.type == pygame.KEYDOWN:
            self._on_key_down(event.key)
        elif event.type == pygame.KEYUP:
            self._on_key_up(event.key)

    def clear_all(self) -> None:
        """Release all currently-held pad keys."""
        for pad_key in list(self._held):
            self._send(pad_key, False)
        self._held.clear()

    # ------------------------------------------------------------------
    # Keyboard handlers
    # ------------------------------------------------------------------

    def _on_key_down(self, key: int) -> None:
        if key == pygame.K_ESCAPE:
            self._quit_requested = True
            return
        if key == pygame.K_p:
            self._pause_toggled = True
            return
        if key == pygame.K_F5:
            self._reset_requested = True
            return

        pad_key = _KEY_MAP.get(key)
        if pad_key is None:
            return
        holders = self._held.setdefault(pad_key, set())
        if not holders:
            self._send(pad_key, True)
        holders.add(key)

    def _on_key_up(self, key: int) -> None:
        pad_key = _KEY_MAP.get(key)
        if pad_key is None:
            return
        holders = self._held.get(pad_key)
        if not holders:
            return
        holders.discard(key)
        if not holders:
            del self._held[pad_key]
            self._send(pad_key, False)

    # ------------------------------------------------------------------
    # Machine bridge
    # ------------------------------------------------------------------

    def _send(self, pad_key: int, down: bool) -> None:
        logger.debug("Key %X %s", pad_key, "down" if down else "up")
        self._machine.set_key(pad_key, down)  # type: ignore[attr-defined]
