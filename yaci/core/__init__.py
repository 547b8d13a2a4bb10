# YACI core
"""
CHIP-8 virtual machine core.

Use :class:`Chip8` to build a machine, :meth:`Chip8.load_rom` to copy a
program into memory and :meth:`Chip8.step` / :meth:`Chip8.timer_tick` to
drive it.
"""

from yaci.core.chip8 import Chip8, StepResult
from yaci.core.display import DirtyRect, DisplayBuffer, DisplaySnapshot
from yaci.core.errors import (
    Chip8Error,
    DecodeError,
    LoadError,
    OutOfBoundsAccess,
    StackOverflow,
    StackUnderflow,
    VMFault,
)
from yaci.core.keypad import Keypad
from yaci.core.memory import FONT_SET, Memory
from yaci.core.stack import CallStack
from yaci.core.timers import Timers
from yaci.core.types import Chip8Config, RandomMode, RunState, UnknownOpcodePolicy

__all__ = [
    "CallStack",
    "Chip8",
    "Chip8Config",
    "Chip8Error",
    "DecodeError",
    "DirtyRect",
    "DisplayBuffer",
    "DisplaySnapshot",
    "FONT_SET",
    "Keypad",
    "LoadError",
    "Memory",
    "OutOfBoundsAccess",
    "RandomMode",
    "RunState",
    "StackOverflow",
    "StackUnderflow",
    "StepResult",
    "Timers",
    "UnknownOpcodePolicy",
    "VMFault",
]
