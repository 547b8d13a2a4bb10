"""
DisplayBuffer -- the 64x32 monochrome screen of the CHIP-8 machine.

The grid is a numpy ``uint8`` array of shape ``(HEIGHT, WIDTH)`` holding one
cell per pixel (0 = off, 1 = on), laid out row-major so that
``pixels[y, x]`` addresses column *x* of row *y*.

Sprites are 8 pixels wide and 1-15 rows tall.  Each row is one byte, most
significant bit leftmost.  Drawing XORs the sprite onto the grid and
reports a *collision* when any lit cell is switched off.  Sprite positions
wrap on both axes, so a sprite drawn at the right or bottom edge continues on
the opposite side of the screen.

Besides the grid the buffer tracks a *redraw* flag and a *dirty rectangle*
(the bounding box of everything touched since the host last acknowledged a
frame).  Only :meth:`DisplayBuffer.clear` and
:meth:`DisplayBuffer.draw_sprite` set them; :meth:`DisplayBuffer.acknowledge`
drops both.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np


class DirtyRect(NamedTuple):
    """Axis-aligned rectangle of cells that changed since the last frame."""

    x: int
    y: int
    width: int
    height: int

    def union(self, other: DirtyRect) -> DirtyRect:
        """Smallest rectangle covering both *self* and *other*."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.x + self.width, other.x + other.width)
        bottom = max(self.y + self.height, other.y + other.height)
        return DirtyRect(left, top, right - left, bottom - top)


@dataclass(frozen=True)
class DisplaySnapshot:
    """Read-only view of one frame handed to the renderer."""

    pixels: np.ndarray
    redraw: bool
    dirty: Optional[DirtyRect]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class DisplayBuffer:
    """64x32 one-bit framebuffer with dirty tracking."""

    WIDTH: int = 64
    HEIGHT: int = 32
    SPRITE_WIDTH: int = 8

    def __init__(self) -> None:
        self._pixels: np.ndarray = np.zeros((self.HEIGHT, self.WIDTH), dtype=np.uint8)
        self._redraw: bool = False
        self._dirty: Optional[DirtyRect] = None

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Switch every cell off and mark the whole screen dirty."""
        self._pixels.fill(0)
        self._mark(DirtyRect(0, 0, self.WIDTH, self.HEIGHT))

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR an 8-pixel-wide sprite onto the grid at (*x*, *y*).

        Args:
            x: Column of the sprite's left edge; taken modulo :attr:`WIDTH`.
            y: Row of the sprite's top edge; taken modulo :attr:`HEIGHT`.
            rows: One byte per sprite row, MSB leftmost.

        Returns:
            ``True`` if any cell went from on to off.
        """
        if len(rows) > self.HEIGHT:
            raise ValueError(
                f"Sprite height {len(rows)} exceeds display height {self.HEIGHT}"
            )
        self._redraw = True
        if not rows:
            return False

        x0 = x % self.WIDTH
        y0 = y % self.HEIGHT
        height = len(rows)

        sprite = np.unpackbits(
            np.frombuffer(bytes(rows), dtype=np.uint8).reshape(height, 1),
            axis=1,
        )
        ys = (y0 + np.arange(height)) % self.HEIGHT
        xs = (x0 + np.arange(self.SPRITE_WIDTH)) % self.WIDTH
        window = np.ix_(ys, xs)

        region = self._pixels[window]
        collision = bool(np.any(region & sprite))
        self._pixels[window] = region ^ sprite

        self._mark(self._span(x0, y0, height))
        return collision

    # ------------------------------------------------------------------
    # Host-side access
    # ------------------------------------------------------------------

    @property
    def redraw(self) -> bool:
        return self._redraw

    @property
    def dirty(self) -> Optional[DirtyRect]:
        return self._dirty

    def pixel(self, x: int, y: int) -> int:
        """Return the cell at column *x*, row *y* (no wrapping)."""
        return int(self._pixels[y, x])

    def snapshot(self) -> DisplaySnapshot:
        """Copy the grid into an immutable :class:`DisplaySnapshot`."""
        pixels = self._pixels.copy()
        pixels.flags.writeable = False
        return DisplaySnapshot(pixels=pixels, redraw=self._redraw, dirty=self._dirty)

    def acknowledge(self) -> None:
        """Called by the consumer once it has presented the frame."""
        self._redraw = False
        self._dirty = None

    def lit_count(self) -> int:
        return int(np.count_nonzero(self._pixels))

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        return self._pixels.tobytes()

    def restore_snapshot(self, data: bytes) -> None:
        expected = self.WIDTH * self.HEIGHT
        if len(data) != expected:
            raise ValueError(
                f"Display snapshot size mismatch: expected {expected}, got {len(data)}"
            )
        grid = np.frombuffer(data, dtype=np.uint8).reshape(self.HEIGHT, self.WIDTH)
        self._pixels[:] = grid & 1
        self._mark(DirtyRect(0, 0, self.WIDTH, self.HEIGHT))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _span(self, x0: int, y0: int, height: int) -> DirtyRect:
        # A wrapped sprite touches both edges; cover the whole axis.
        if x0 + self.SPRITE_WIDTH > self.WIDTH:
            left, width = 0, self.WIDTH
        else:
            left, width = x0, self.SPRITE_WIDTH
        if y0 + height > self.HEIGHT:
            top, rect_height = 0, self.HEIGHT
        else:
            top, rect_height = y0, height
        return DirtyRect(left, top, width, rect_height)

    def _mark(self, rect: DirtyRect) -> None:
        self._redraw = True
        self._dirty = rect if self._dirty is None else self._dirty.union(rect)

    def __repr__(self) -> str:
        return (
            f"DisplayBuffer({self.WIDTH}x{self.HEIGHT}, "
            f"lit={self.lit_count()}, redraw={self._redraw})"
        )
