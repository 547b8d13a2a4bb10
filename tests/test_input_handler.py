"""
Input Handler Tests
===================

Feeds synthetic pygame events to the handler and records what reaches the
machine.
"""

import pygame
import pytest

from yaci.platform.input_handler import InputHandler


class FakeMachine:
    def __init__(self):
        self.calls = []

    def set_key(self, index, pressed):
        self.calls.append((index, pressed))


def key_event(kind, key):
    return pygame.event.Event(kind, key=key)


@pytest.fixture
def machine():
    return FakeMachine()


@pytest.fixture
def handler(machine):
    return InputHandler(machine)


class TestKeyMapping:
    """Keyboard to pad translation."""

    @pytest.mark.parametrize(
        "key, pad",
        [
            (pygame.K_1, 0x1), (pygame.K_4, 0xC), (pygame.K_q, 0x4),
            (pygame.K_x, 0x0), (pygame.K_v, 0xF), (pygame.K_UP, 0x2),
            (pygame.K_LEFT, 0x4), (pygame.K_DOWN, 0x5), (pygame.K_RIGHT, 0x6),
        ],
    )
    def test_press_and_release(self, handler, machine, key, pad):
        """Key down and key up reach the machine as pad events."""
        handler.handle_event(key_event(pygame.KEYDOWN, key))
        handler.handle_event(key_event(pygame.KEYUP, key))
        assert machine.calls == [(pad, True), (pad, False)]

    def test_unmapped_key_ignored(self, handler, machine):
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_m))
        assert machine.calls == []

    def test_shared_pad_key(self, handler, machine):
        """W and Down share key 5; it is released only when both are up."""
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_w))
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_DOWN))
        handler.handle_event(key_event(pygame.KEYUP, pygame.K_w))
        assert machine.calls == [(0x5, True)]
        handler.handle_event(key_event(pygame.KEYUP, pygame.K_DOWN))
        assert machine.calls == [(0x5, True), (0x5, False)]

    def test_clear_all(self, handler, machine):
        """Held keys are released."""
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_a))
        handler.clear_all()
        assert machine.calls == [(0x7, True), (0x7, False)]


class TestControlKeys:
    """Host-level actions."""

    def test_escape_quits(self, handler):
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_ESCAPE))
        assert handler.quit_requested

    def test_window_close_quits(self, handler):
        handler.handle_event(pygame.event.Event(pygame.QUIT))
        assert handler.quit_requested

    def test_pause_toggle_is_one_shot(self, handler):
        """The toggle is reported once."""
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_p))
        assert handler.take_pause_toggle() is True
        assert handler.take_pause_toggle() is False

    def test_reset_request(self, handler, machine):
        """F5 requests a reset and sends nothing to the pad."""
        handler.handle_event(key_event(pygame.KEYDOWN, pygame.K_F5))
        assert handler.take_reset_request() is True
        assert machine.calls == []
