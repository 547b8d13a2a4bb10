"""
Command-Line Tests
==================

Only the paths that never open a window.
"""

import pytest

from yaci.main import main


class TestInfo:
    """--info mode."""

    def test_prints_metadata(self, rom_file, capsys):
        """Metadata is printed and the exit code is 0."""
        assert main([rom_file(b"\x00\xE0\x12\x00", name="demo.ch8"), "--info"]) == 0
        out = capsys.readouterr().out
        assert "demo.ch8" in out
        assert "00E0" in out

    def test_missing_rom(self, tmp_path, capsys):
        """An unreadable ROM exits with 1."""
        assert main([str(tmp_path / "missing.ch8"), "--info"]) == 1
        assert "Error" in capsys.readouterr().err


class TestLoadErrors:
    """Failures before the window opens."""

    def test_missing_rom(self, tmp_path):
        assert main([str(tmp_path / "missing.ch8")]) == 1

    def test_oversized_rom(self, rom_file):
        """A ROM too large for memory exits with 1."""
        assert main([rom_file(bytes(4000))]) == 1

    def test_bad_cycle_count(self, rom_file):
        """--cycles below 1 is a usage error."""
        with pytest.raises(SystemExit):
            main([rom_file(b"\x00\xE0"), "--cycles", "0"])
