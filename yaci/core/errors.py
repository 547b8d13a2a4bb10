"""
Exception hierarchy for the YACI virtual machine.

``LoadError`` is raised by the loaders before execution starts.  Everything
deriving from :class:`VMFault` is raised by an instruction handler during a
cycle; :meth:`yaci.core.chip8.Chip8.step` catches those and hands them back
to the host inside a :class:`~yaci.core.chip8.StepResult` instead of letting
them propagate.
"""

from __future__ import annotations

from typing import Optional


class Chip8Error(Exception):
    """Base class for every error raised by the interpreter."""


class LoadError(Chip8Error):
    """The ROM could not be read or does not fit in memory."""


class VMFault(Chip8Error):
    """A fatal fault raised while executing an instruction.

    Attributes
    ----------
    pc:
        Address of the instruction that faulted (``None`` when the fault
        happened outside a cycle, e.g. a direct memory access).
    opcode:
        The 16-bit opcode being executed, or ``None`` if the fault happened
        during fetch.
    """

    def __init__(
        self,
        message: str,
        *,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.pc: Optional[int] = pc
        self.opcode: Optional[int] = opcode

    def locate(self, pc: int, opcode: Optional[int]) -> VMFault:
        """Fill in the faulting pc/opcode if the raiser did not know them."""
        if self.pc is None:
            self.pc = pc
        if self.opcode is None:
            self.opcode = opcode
        return self

    def __str__(self) -> str:
        text = super().__str__()
        if self.opcode is not None and self.pc is not None:
            return f"{text} (opcode {self.opcode:04X} at {self.pc:03X})"
        if self.pc is not None:
            return f"{text} (at {self.pc:03X})"
        return text


class DecodeError(VMFault):
    """The fetched opcode does not belong to the recognized instruction set."""


class StackUnderflow(VMFault):
    """A subroutine return was executed with an empty call stack."""


class StackOverflow(VMFault):
    """A subroutine call was executed with the call stack already full."""


class OutOfBoundsAccess(VMFault):
    """pc, i or an indexed access fell outside the address space."""

    def __init__(
        self,
        message: str,
        *,
        address: int,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ) -> None:
        super().__init__(message, pc=pc, opcode=opcode)
        self.address: int = address
