"""
Core enumerations and configuration for YACI.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class RunState(IntEnum):
    RUNNING = 0
    WAITING_FOR_KEY = 1
    HALTED = 2


class RandomMode(Enum):
    """How CXNN combines the random byte with NN."""

    AND = "and"
    XOR = "xor"


class UnknownOpcodePolicy(Enum):
    """What the engine does with an opcode outside the instruction set."""

    FATAL = "fatal"
    SKIP = "skip"


@dataclass(frozen=True)
class Chip8Config:
    """Engine behaviour switches.

    Parameters
    ----------
    random_mode:
        Operator CXNN uses to mix the random byte with NN.
    unknown_opcode:
        ``FATAL`` halts the VM with a :class:`~yaci.core.errors.DecodeError`;
        ``SKIP`` logs a warning and steps over the opcode.
    shift_quirk:
        When ``True``, 8XY6 / 8XYE shift vY and store the result in vX
        (original COSMAC VIP behaviour).  Otherwise vX is shifted in place.
    load_store_quirk:
        When ``True``, FX55 / FX65 leave ``i`` pointing just past the last
        byte transferred.
    cycles_per_tick:
        Instructions the host runs per timer tick.
    timer_hz:
        Timer tick rate in Hz.
    seed:
        Seed for the CXNN random source; ``None`` for OS entropy.
    """

    random_mode: RandomMode = RandomMode.AND
    unknown_opcode: UnknownOpcodePolicy = UnknownOpcodePolicy.FATAL
    shift_quirk: bool = False
    load_store_quirk: bool = False
    cycles_per_tick: int = 18
    timer_hz: int = 60
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.cycles_per_tick < 1:
            raise ValueError(
                f"cycles_per_tick must be positive, got {self.cycles_per_tick}"
            )
        if self.timer_hz < 1:
            raise ValueError(f"timer_hz must be positive, got {self.timer_hz}")
