"""
ROM Loading and Machine Factory Tests
=====================================
"""

import pytest

from yaci.core import Chip8, LoadError, RandomMode, UnknownOpcodePolicy
from yaci.shell.services.machine_factory import MachineFactory
from yaci.shell.services.rom_loader import RomLoader


class TestRomLoader:
    """Reading and validating program images."""

    def test_read(self, rom_file):
        """The file's bytes come back unchanged."""
        path = rom_file(b"\x00\xE0\x12\x00")
        assert RomLoader.read(path) == b"\x00\xE0\x12\x00"

    def test_missing_file(self, tmp_path):
        """A missing file is a LoadError, not an OSError."""
        with pytest.raises(LoadError):
            RomLoader.read(str(tmp_path / "nope.ch8"))

    def test_empty_file(self, rom_file):
        """Empty ROMs are refused."""
        with pytest.raises(LoadError):
            RomLoader.read(rom_file(b""))

    def test_too_large(self, rom_file):
        """Anything over 3584 bytes is refused."""
        with pytest.raises(LoadError):
            RomLoader.read(rom_file(bytes(3585)))

    def test_largest_accepted(self, rom_file):
        """Exactly 3584 bytes is fine."""
        assert len(RomLoader.read(rom_file(bytes(3584)))) == 3584

    def test_describe(self, rom_file):
        """Metadata reports size, addresses and the first opcode."""
        info = RomLoader.describe(rom_file(b"\xA2\x2A\x60\x0C", name="maze.ch8"))
        assert info["file"] == "maze.ch8"
        assert info["size"] == "4 bytes"
        assert info["load_address"] == "0x200"
        assert info["end_address"] == "0x203"
        assert info["first_opcode"] == "A22A"
        assert info["known_extension"] is True

    def test_describe_unknown_extension(self, rom_file):
        """Unusual extensions still describe, flagged as unknown."""
        info = RomLoader.describe(rom_file(b"\x00", name="game.xyz"))
        assert info["known_extension"] is False
        assert info["first_opcode"] == "0000"


class TestMachineFactory:
    """Building configured machines."""

    def test_create(self, rom_file):
        """The ROM is loaded and ready to run."""
        machine = MachineFactory.create(rom_file(b"\x60\x2A"))
        assert isinstance(machine, Chip8)
        machine.step()
        assert machine.v[0] == 0x2A

    def test_create_missing_rom(self, tmp_path):
        """Load problems propagate as LoadError."""
        with pytest.raises(LoadError):
            MachineFactory.create(str(tmp_path / "missing.ch8"))

    def test_build_config_defaults(self):
        """No options gives the strict defaults."""
        config = MachineFactory.build_config()
        assert config.random_mode == RandomMode.AND
        assert config.unknown_opcode == UnknownOpcodePolicy.FATAL
        assert config.cycles_per_tick == 18
        assert not config.shift_quirk

    def test_build_config_options(self):
        """String modes and flags are translated."""
        config = MachineFactory.build_config(
            random_mode="XOR",
            skip_unknown_opcodes=True,
            shift_quirk=True,
            load_store_quirk=True,
            cycles_per_tick=30,
            seed=7,
        )
        assert config.random_mode == RandomMode.XOR
        assert config.unknown_opcode == UnknownOpcodePolicy.SKIP
        assert config.shift_quirk and config.load_store_quirk
        assert config.cycles_per_tick == 30
        assert config.seed == 7

    def test_bad_random_mode(self):
        with pytest.raises(ValueError):
            MachineFactory.build_config(random_mode="or")

    def test_config_and_options_conflict(self, rom_file):
        """Passing both a config and loose options is an error."""
        config = MachineFactory.build_config()
        with pytest.raises(TypeError):
            MachineFactory.create(rom_file(b"\x00\xE0"), config, seed=1)
