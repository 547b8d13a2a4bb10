"""
Main application window for YACI.
Uses pygame to create a display, drive the emulation main loop, and
coordinate audio, video, and input subsystems.

Typical usage::

    from yaci.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    window = Window(machine, scale=10)
    fault = window.run()
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import pygame

from yaci.core.chip8 import Chip8
from yaci.core.errors import VMFault
from yaci.platform.audio import Beeper
from yaci.platform.input_handler import InputHandler
from yaci.shell.frame_renderer import FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "YACI"

# Minimum / maximum allowed display scale factors.
_MIN_SCALE: int = 1
_MAX_SCALE: int = 30


class Window:
    """Pygame window that owns the emulation main loop.

    Each frame the window runs ``config.cycles_per_tick`` instructions,
    one timer tick and, if the machine raised its redraw flag, one render.
    Frames are throttled to ``config.timer_hz``.

    Parameters
    ----------
    machine:
        A machine with a ROM loaded.
    scale:
        Integer scale factor applied to the 64x32 native resolution.
    enable_audio:
        Set to ``False`` to mute the beeper.
    """

    def __init__(
        self,
        machine: Chip8,
        scale: int = 10,
        *,
        enable_audio: bool = True,
    ) -> None:
        # ---- basic state -------------------------------------------------
        self._machine: Chip8 = machine
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))
        self._running: bool = False
        self._paused: bool = False
        self._fault: Optional[VMFault] = None

        self._cycles_per_tick: int = machine.config.cycles_per_tick
        self._frame_hz: int = machine.config.timer_hz

        # ---- geometry ----------------------------------------------------
        display = machine.display
        self._native_width: int = display.WIDTH
        self._native_height: int = display.HEIGHT
        self._display_width: int = self._native_width * self._scale
        self._display_height: int = self._native_height * self._scale

        # ---- init pygame display -----------------------------------------
        if not pygame.get_init():
            pygame.init()

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
            pygame.RESIZABLE,
        )
        pygame.display.set_caption(_WINDOW_TITLE)

        self._clock: pygame.time.Clock = pygame.time.Clock()
        self._last_size: tuple[int, int] = self._screen.get_size()

        # ---- subsystems --------------------------------------------------
        self._frame_renderer: FrameRenderer = FrameRenderer(
            self._native_width, self._native_height
        )
        self._beeper: Beeper = Beeper(enabled=enable_audio)
        self._input: InputHandler = InputHandler(machine)

        # ---- performance counters ----------------------------------------
        self._frame_count: int = 0
        self._fps_update_time: float = 0.0
        self._fps_display: float = 0.0

        logger.info(
            "Window: %dx%d native, %dx%d display (scale=%d, %d cycles @ %d Hz)",
            self._native_width,
            self._native_height,
            self._display_width,
            self._display_height,
            self._scale,
            self._cycles_per_tick,
            self._frame_hz,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def scale(self) -> int:
        return self._scale

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> Optional[VMFault]:
        """Enter the main emulation loop.

        Blocks until the user closes the window, presses Escape, or the
        machine faults.

        Returns:
            The fault that stopped the machine, or ``None`` on a normal quit.
        """
        self._running = True
        self._fps_update_time = time.monotonic()
        self._frame_count = 0

        logger.info("Entering main loop (target %d fps)", self._frame_hz)

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()
        return self._fault

    # ------------------------------------------------------------------
    # Per-frame tick
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        """Execute one iteration of the main loop."""
        # ---- input -------------------------------------------------------
        self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return
        if self._input.take_pause_toggle():
            self._paused = not self._paused
            self._beeper.update(False)
            logger.info("Paused" if self._paused else "Resumed")
        if self._input.take_reset_request():
            logger.info("Resetting machine")
            self._machine.reset()

        # ---- emulation ---------------------------------------------------
        if not self._paused:
            result = self._machine.run_cycles(self._cycles_per_tick)
            if result.fault is not None:
                logger.error("Machine halted: %s", result.fault)
                self._fault = result.fault
                self._running = False
                # Show whatever was drawn before the fault.
                self._present()
                return

            # ---- audio ---------------------------------------------------
            self._beeper.update(self._machine.timer_tick())

        # ---- video -------------------------------------------------------
        self._present()

        # ---- timing ------------------------------------------------------
        self._clock.tick(self._frame_hz)
        self._update_fps()

    def _present(self) -> None:
        """Blit the frame if the machine asked for a redraw."""
        snapshot = self._machine.read_display()
        if not snapshot.redraw:
            return

        surface = self._frame_renderer.render(snapshot)
        current_size = self._screen.get_size()
        scaled = pygame.transform.scale(surface, current_size)
        self._screen.blit(scaled, (0, 0))

        rect = FrameRenderer.scale_rect(
            snapshot.dirty,
            current_size[0] / self._native_width,
            current_size[1] / self._native_height,
        )
        if rect is None or current_size != self._last_size:
            pygame.display.flip()
        else:
            pygame.display.update(rect)
        self._last_size = current_size
        self._machine.acknowledge_display()

    # ------------------------------------------------------------------
    # FPS tracking
    # ------------------------------------------------------------------

    def _update_fps(self) -> None:
        """Update the displayed FPS counter roughly once per second."""
        self._frame_count += 1
        now = time.monotonic()
        elapsed = now - self._fps_update_time
        if elapsed >= 1.0:
            self._fps_display = self._frame_count / elapsed
            self._frame_count = 0
            self._fps_update_time = now
            state = "  [paused]" if self._paused else ""
            pygame.display.set_caption(
                f"{_WINDOW_TITLE}  [{self._fps_display:.1f} fps]{state}"
            )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        """Clean up all subsystems."""
        logger.info("Shutting down")
        self._beeper.shutdown()
        pygame.quit()
