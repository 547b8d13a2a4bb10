"""
Memory -- the flat 4 KB address space of the CHIP-8 machine.

Layout
------

=============  =================================================
Range          Contents
=============  =================================================
0x000-0x04F    Font table: 16 glyphs (0-F), 5 bytes each
0x050-0x1FF    Unused (historically the interpreter itself)
0x200-0xFFF    Program ROM and working RAM
=============  =================================================

Unlike the masked RAM chips of real hardware, every access here is
bounds-checked: reading or writing outside ``[0, 4096)`` raises
:class:`~yaci.core.errors.OutOfBoundsAccess` instead of wrapping.
"""

from __future__ import annotations

from typing import Iterable

from yaci.core.errors import LoadError, OutOfBoundsAccess

# fmt: off
FONT_SET: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
# fmt: on


class Memory:
    """4096 bytes of byte-addressable RAM with the font table preloaded."""

    SIZE: int = 0x1000
    FONT_BASE: int = 0x000
    GLYPH_BYTES: int = 5
    PROGRAM_START: int = 0x200
    MAX_ROM_SIZE: int = SIZE - PROGRAM_START

    def __init__(self) -> None:
        self._data: bytearray = bytearray(self.SIZE)
        self.load_font()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_font(self) -> None:
        """Copy the glyph table into ``[0, 80)``."""
        self._data[self.FONT_BASE:self.FONT_BASE + len(FONT_SET)] = FONT_SET

    def load_rom(self, rom: bytes) -> None:
        """Copy the font, then *rom*, into memory.

        Raises:
            LoadError: If the program does not fit between 0x200 and the end
                of memory.
        """
        if self.PROGRAM_START + len(rom) > self.SIZE:
            raise LoadError(
                f"ROM is {len(rom)} bytes; at most {self.MAX_ROM_SIZE} bytes "
                f"fit above 0x{self.PROGRAM_START:03X}"
            )
        self.load_font()
        end = self.PROGRAM_START + len(rom)
        self._data[self.PROGRAM_START:end] = rom

    def clear(self) -> None:
        """Zero all of memory and reload the font."""
        self._data[:] = bytes(self.SIZE)
        self.load_font()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def read(self, addr: int) -> int:
        self._check(addr, 1)
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        self._check(addr, 1)
        self._data[addr] = value & 0xFF

    def read_block(self, addr: int, length: int) -> bytes:
        """Return *length* bytes starting at *addr*."""
        self._check(addr, length)
        return bytes(self._data[addr:addr + length])

    def write_block(self, addr: int, data: Iterable[int]) -> None:
        """Write *data* starting at *addr*.

        The whole range is validated first, so a failing write leaves
        memory untouched.
        """
        values = bytes(v & 0xFF for v in data)
        self._check(addr, len(values))
        self._data[addr:addr + len(values)] = values

    def font_address(self, digit: int) -> int:
        """Address of the glyph for hex *digit* (0-F)."""
        return self.FONT_BASE + (digit & 0xF) * self.GLYPH_BYTES

    def __getitem__(self, addr: int) -> int:
        return self.read(addr)

    def __setitem__(self, addr: int, value: int) -> None:
        self.write(addr, value)

    def __len__(self) -> int:
        return self.SIZE

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> bytes:
        """Return an immutable copy of the memory contents."""
        return bytes(self._data)

    def restore_snapshot(self, data: bytes) -> None:
        """Restore memory contents from a previous snapshot.

        Raises:
            ValueError: If *data* is not exactly :attr:`SIZE` bytes.
        """
        if len(data) != self.SIZE:
            raise ValueError(
                f"Snapshot size mismatch: expected {self.SIZE}, got {len(data)}"
            )
        self._data[:] = data

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check(self, addr: int, length: int) -> None:
        if addr < 0 or addr + length > self.SIZE:
            bad = addr if addr < 0 or addr >= self.SIZE else self.SIZE
            raise OutOfBoundsAccess(
                f"Memory access of {length} byte(s) at 0x{addr:X} is outside "
                f"[0, 0x{self.SIZE:X})",
                address=bad,
            )

    def __repr__(self) -> str:
        return f"Memory(size={self.SIZE})"
