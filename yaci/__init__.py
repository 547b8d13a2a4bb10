"""
YACI -- Yet Another CHIP-8 Interpreter.

The :mod:`yaci.core` package holds the virtual machine itself; everything
under :mod:`yaci.platform` and :mod:`yaci.shell` is host-side plumbing
(pygame window, keyboard mapping, audio, ROM files).
"""

__version__ = "1.0.0"
