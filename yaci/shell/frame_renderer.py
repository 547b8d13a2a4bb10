"""
Frame renderer for YACI.
Converts the machine's one-bit display grid into an RGB pygame Surface.

The core hands out a :class:`~yaci.core.display.DisplaySnapshot` whose
``pixels`` array holds 0/1 per cell, shape ``(32, 64)``.  This module maps
each cell through a two-entry colour table with **numpy** fancy indexing and
blits the result into a reusable :class:`pygame.Surface` of native size.
Scaling to the window is left to :class:`~yaci.platform.window.Window`.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import pygame

from yaci.core.display import DirtyRect, DisplaySnapshot

logger = logging.getLogger(__name__)

# 0xRRGGBB
DEFAULT_OFF_COLOUR: int = 0x000000
DEFAULT_ON_COLOUR: int = 0xFFFFFF


def _split_rgb(colour: int) -> Tuple[int, int, int]:
    return (colour >> 16) & 0xFF, (colour >> 8) & 0xFF, colour & 0xFF


class FrameRenderer:
    """Convert display snapshots into an RGB :class:`pygame.Surface`.

    Parameters
    ----------
    width, height:
        Native grid size in cells.
    off_colour, on_colour:
        ``0xRRGGBB`` values for unlit and lit cells.
    """

    def __init__(
        self,
        width: int,
        height: int,
        off_colour: int = DEFAULT_OFF_COLOUR,
        on_colour: int = DEFAULT_ON_COLOUR,
    ) -> None:
        self._width: int = width
        self._height: int = height

        self._lut: np.ndarray = np.zeros((2, 3), dtype=np.uint8)
        self.set_colours(off_colour, on_colour)

        self._surface: pygame.Surface = pygame.Surface((width, height))

        logger.info("FrameRenderer: %dx%d native", width, height)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def set_colours(self, off_colour: int, on_colour: int) -> None:
        self._lut[0] = _split_rgb(off_colour)
        self._lut[1] = _split_rgb(on_colour)

    def to_rgb(self, pixels: np.ndarray) -> np.ndarray:
        """Map a ``(H, W)`` 0/1 grid to a ``(W, H, 3)`` RGB array.

        The result is already transposed into the column-major layout that
        :func:`pygame.surfarray.blit_array` expects.
        """
        if pixels.shape != (self._height, self._width):
            raise ValueError(
                f"Expected a {self._height}x{self._width} grid, got {pixels.shape}"
            )
        return self._lut[pixels & 1].transpose(1, 0, 2)

    def render(self, snapshot: DisplaySnapshot) -> pygame.Surface:
        """Render *snapshot* into the internal surface and return it.

        The same :class:`pygame.Surface` object is reused each frame.
        """
        pygame.surfarray.blit_array(self._surface, self.to_rgb(snapshot.pixels))
        return self._surface

    @staticmethod
    def scale_rect(rect: Optional[DirtyRect], scale_x: float, scale_y: float) -> Optional[pygame.Rect]:
        """Convert a dirty rectangle in cells to window pixels."""
        if rect is None:
            return None
        return pygame.Rect(
            int(rect.x * scale_x),
            int(rect.y * scale_y),
            int(round(rect.width * scale_x)),
            int(round(rect.height * scale_y)),
        )
