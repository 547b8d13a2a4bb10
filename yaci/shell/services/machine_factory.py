"""
Machine creation factory for YACI.

Creates a ready-to-run :class:`~yaci.core.chip8.Chip8` from a ROM file path
and optional behaviour overrides.

Typical usage::

    machine = MachineFactory.create("pong.ch8")
    machine = MachineFactory.create("game.ch8", random_mode="xor", seed=1)
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from yaci.core.chip8 import Chip8
from yaci.core.types import Chip8Config, RandomMode, UnknownOpcodePolicy
from yaci.shell.services.rom_loader import RomLoader

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create a CHIP-8 machine from a ROM file."""

    @staticmethod
    def build_config(
        random_mode: Optional[Union[RandomMode, str]] = None,
        skip_unknown_opcodes: bool = False,
        shift_quirk: bool = False,
        load_store_quirk: bool = False,
        cycles_per_tick: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> Chip8Config:
        """Translate host options into a :class:`Chip8Config`.

        Parameters
        ----------
        random_mode:
            A :class:`RandomMode` or its value (``"and"`` / ``"xor"``).
            ``None`` keeps the default.
        skip_unknown_opcodes:
            Opt in to stepping over unknown opcodes instead of halting.

        Raises
        ------
        ValueError
            If *random_mode* is not recognised.
        """
        defaults = Chip8Config()
        if isinstance(random_mode, str):
            random_mode = RandomMode(random_mode.lower())
        return Chip8Config(
            random_mode=random_mode if random_mode is not None else defaults.random_mode,
            unknown_opcode=(
                UnknownOpcodePolicy.SKIP if skip_unknown_opcodes
                else UnknownOpcodePolicy.FATAL
            ),
            shift_quirk=shift_quirk,
            load_store_quirk=load_store_quirk,
            cycles_per_tick=(
                cycles_per_tick if cycles_per_tick is not None
                else defaults.cycles_per_tick
            ),
            seed=seed,
        )

    @staticmethod
    def create(rom_path: str, config: Optional[Chip8Config] = None, **options) -> Chip8:
        """Build and return a machine with the ROM at *rom_path* loaded.

        Parameters
        ----------
        rom_path:
            Filesystem path to the program image.
        config:
            Complete engine configuration.  When ``None`` one is built from
            *options* via :meth:`build_config`.

        Raises
        ------
        LoadError
            If the ROM cannot be read or does not fit in memory.
        """
        if config is None:
            config = MachineFactory.build_config(**options)
        elif options:
            raise TypeError("Pass either a config or individual options, not both")

        rom = RomLoader.read(rom_path)
        machine = Chip8(config, rom)
        logger.info(
            "Created machine for %s (random=%s, unknown=%s, shift_quirk=%s, "
            "load_store_quirk=%s)",
            rom_path,
            config.random_mode.value,
            config.unknown_opcode.value,
            config.shift_quirk,
            config.load_store_quirk,
        )
        return machine

    @staticmethod
    def describe(rom_path: str) -> dict:
        """Return ROM metadata without building a machine."""
        return RomLoader.describe(rom_path)
