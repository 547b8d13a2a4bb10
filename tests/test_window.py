"""
Window Main-Loop Tests
======================

Runs single frames against pygame's dummy video driver (see conftest).
"""

import pygame
import pytest

from yaci.core import StackUnderflow
from yaci.platform.window import Window


@pytest.fixture
def window_for(make_machine):
    def _make(*opcodes):
        return Window(make_machine(*opcodes), scale=2, enable_audio=False)

    yield _make
    pygame.quit()


class TestFrame:
    """One iteration of the main loop."""

    def test_frame_is_presented(self, window_for):
        """A normal frame runs cycles and acknowledges the redraw."""
        window = window_for(0xA000, 0xD015, 0x1204)
        window._tick()
        machine = window._machine
        assert machine.display.lit_count() > 0
        assert machine.read_display().redraw is False

    def test_last_frame_shown_on_fault(self, window_for):
        """The sprite drawn right before a fault still reaches the screen."""
        window = window_for(0xA000, 0xD015, 0x00EE)
        window._tick()
        machine = window._machine
        assert isinstance(window._fault, StackUnderflow)
        assert machine.display.lit_count() > 0
        assert machine.read_display().redraw is False
