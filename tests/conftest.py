"""
Shared fixtures for the YACI test suite.
"""

import os

# Keep pygame headless for the platform tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from yaci.core import Chip8, Chip8Config


def assemble(*opcodes: int) -> bytes:
    """Pack 16-bit opcodes into a big-endian ROM image."""
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


@pytest.fixture
def make_machine():
    """Build a machine running the given opcodes from 0x200."""

    def _make(*opcodes: int, config: Chip8Config = None) -> Chip8:
        if config is None:
            config = Chip8Config(seed=1234)
        return Chip8(config, assemble(*opcodes))

    return _make


@pytest.fixture
def rom_file(tmp_path):
    """Write a ROM to a temporary file and return its path."""

    def _write(data: bytes, name: str = "test.ch8") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)

    return _write
