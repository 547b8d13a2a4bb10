"""
ROM file service for YACI.

CHIP-8 programs are raw, headerless byte images that the machine copies to
0x200.  This service reads them from disk and validates their size before
anything touches the VM, so that every storage problem surfaces as a
:class:`~yaci.core.errors.LoadError` ahead of the first cycle.
"""

from __future__ import annotations

import os

from yaci.core.errors import LoadError
from yaci.core.memory import Memory

# Conventional extensions; anything else still loads.
_ROM_EXTENSIONS: frozenset[str] = frozenset({".ch8", ".c8", ".rom", ".bin"})


class RomLoader:
    """Static utility for loading ROM files and describing them."""

    MAX_SIZE: int = Memory.MAX_ROM_SIZE

    # -- reading -----------------------------------------------------------

    @staticmethod
    def read(path: str) -> bytes:
        """Read the ROM at *path*.

        Returns:
            The raw program bytes.

        Raises:
            LoadError: If the file is missing, unreadable, empty, or too large
                to fit above 0x200.
        """
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            raise LoadError(f"Cannot read ROM {path!r}: {exc}") from exc

        RomLoader.validate(data, path)
        return data

    @staticmethod
    def validate(data: bytes, name: str = "<rom>") -> None:
        """Raise :class:`LoadError` unless *data* is a loadable program."""
        if not data:
            raise LoadError(f"ROM {name!r} is empty")
        if len(data) > RomLoader.MAX_SIZE:
            raise LoadError(
                f"ROM {name!r} is {len(data)} bytes; the limit is "
                f"{RomLoader.MAX_SIZE} bytes"
            )

    # -- metadata ----------------------------------------------------------

    @staticmethod
    def describe(path: str) -> dict:
        """Return human-readable metadata for the ROM at *path*.

        Raises:
            LoadError: As for :meth:`read`.
        """
        data = RomLoader.read(path)
        ext = os.path.splitext(path)[1].lower()
        first_opcode = (data[0] << 8) | data[1] if len(data) >= 2 else data[0] << 8
        return {
            "file": os.path.basename(path),
            "size": f"{len(data)} bytes",
            "load_address": f"0x{Memory.PROGRAM_START:03X}",
            "end_address": f"0x{Memory.PROGRAM_START + len(data) - 1:03X}",
            "free_memory": f"{RomLoader.MAX_SIZE - len(data)} bytes",
            "first_opcode": f"{first_opcode:04X}",
            "known_extension": ext in _ROM_EXTENSIONS,
        }
