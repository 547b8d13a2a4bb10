"""
CHIP-8 virtual machine -- the fetch / decode / execute engine.

The :class:`Chip8` instance is the single owner of every piece of VM state:
the sixteen ``V`` registers, the index register ``i``, the program counter,
the call stack, memory, the display buffer, the keypad and the two timers.
Hosts interact with it only through its public operations:

* :meth:`Chip8.step` / :meth:`Chip8.run_cycles` -- execute instructions.
* :meth:`Chip8.timer_tick` -- the 60 Hz timer decrement.
* :meth:`Chip8.set_key` / :meth:`Chip8.set_keys` -- keypad input.
* :meth:`Chip8.read_display` / :meth:`Chip8.acknowledge_display` -- video.

Instruction encoding
--------------------

Every instruction is two bytes, big-endian.  The top nibble selects the
instruction family; families 0, 8, E and F are further decoded on the low
nibble or low byte.  Field names used throughout::

    0x D X Y N
         \\ \\ \\__ N   low nibble
          \\ \\___ Y   register index
           \\____ X   register index
    NN  = low byte,  NNN = low 12 bits

Handlers own the program counter: each one either adds 2 (4 when a skip
condition holds) or sets it outright.  The engine itself never advances pc.

Faults
------

Handlers raise :class:`~yaci.core.errors.VMFault` subclasses.  :meth:`step`
catches them, moves the machine to :attr:`RunState.HALTED` and returns the
fault inside a :class:`StepResult`, leaving the host to decide whether to
stop, reset or report.  The engine never exits the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from yaci.core.display import DisplayBuffer, DisplaySnapshot
from yaci.core.errors import DecodeError, OutOfBoundsAccess, VMFault
from yaci.core.keypad import Keypad
from yaci.core.memory import Memory
from yaci.core.stack import CallStack
from yaci.core.timers import Timers
from yaci.core.types import Chip8Config, RandomMode, RunState, UnknownOpcodePolicy

logger = logging.getLogger(__name__)

Handler = Callable[[int], None]

REGISTER_COUNT: int = 16
FLAG: int = 0xF


@dataclass(frozen=True)
class StepResult:
    """Outcome of one :meth:`Chip8.step` call.

    Attributes
    ----------
    state:
        Run state after the cycle.
    opcode:
        The instruction executed (or being waited on), ``None`` if nothing
        was fetched.
    fault:
        The fatal fault that halted the machine, if any.
    """

    state: RunState
    opcode: Optional[int] = None
    fault: Optional[VMFault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    @property
    def halted(self) -> bool:
        return self.state == RunState.HALTED


class Chip8:
    """The CHIP-8 interpreter.

    Parameters
    ----------
    config:
        Behaviour switches (quirks, unknown-opcode policy, random seed).
    rom:
        Optional program image; when given it is loaded immediately.

    Raises
    ------
    LoadError
        If *rom* does not fit in memory.
    """

    PROGRAM_START: int = Memory.PROGRAM_START

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        config: Optional[Chip8Config] = None,
        rom: Optional[bytes] = None,
    ) -> None:
        self.config: Chip8Config = config if config is not None else Chip8Config()

        # Components
        self.memory: Memory = Memory()
        self.stack: CallStack = CallStack()
        self.timers: Timers = Timers()
        self.display: DisplayBuffer = DisplayBuffer()
        self.keypad: Keypad = Keypad()

        # Registers
        self.v: List[int] = [0] * REGISTER_COUNT
        self.i: int = 0x000
        self.pc: int = self.PROGRAM_START
        self.opcode: int = 0x0000

        # Run state
        self.state: RunState = RunState.RUNNING
        self.fault: Optional[VMFault] = None
        self.cycle_count: int = 0
        self._wait_register: Optional[int] = None

        self._rng: np.random.Generator = np.random.default_rng(self.config.seed)
        self._rom: bytes = b""

        self._families: List[Handler] = self._build_dispatch_tables()

        if rom is not None:
            self.load_rom(rom)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_rom(self, rom: bytes) -> None:
        """Copy *rom* to 0x200 and reset the machine to run it.

        Raises:
            LoadError: If the ROM does not fit in memory.
        """
        self.memory.load_rom(rom)
        self._rom = bytes(rom)
        self.reset()
        logger.info("Loaded %d-byte ROM at 0x%03X", len(rom), self.PROGRAM_START)

    def reset(self) -> None:
        """Return to the power-on state, keeping the loaded ROM."""
        self.memory.clear()
        self.memory.load_rom(self._rom)
        self.stack.clear()
        self.timers.reset()
        self.keypad.reset()
        self.display.clear()
        self.v = [0] * REGISTER_COUNT
        self.i = 0x000
        self.pc = self.PROGRAM_START
        self.opcode = 0x0000
        self.state = RunState.RUNNING
        self.fault = None
        self.cycle_count = 0
        self._wait_register = None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step(self) -> StepResult:
        """Run one fetch / decode / execute cycle.

        While waiting for a key the cycle only checks for a key-press event;
        a halted machine does nothing and reports its fault again.
        """
        if self.state == RunState.HALTED:
            return StepResult(self.state, self.opcode, self.fault)

        if self.state == RunState.WAITING_FOR_KEY:
            return self._resume_wait()

        pc = self.pc
        opcode: Optional[int] = None
        try:
            opcode = self._fetch()
            handler = self._families[opcode >> 12]
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%03X: %04X", pc, opcode)
            handler(opcode)
        except VMFault as fault:
            fault.locate(pc, opcode)
            self.state = RunState.HALTED
            self.fault = fault
            return StepResult(self.state, opcode, fault)

        self.cycle_count += 1
        return StepResult(self.state, opcode)

    def run_cycles(self, count: int) -> StepResult:
        """Run up to *count* cycles.

        Stops early when the machine faults or begins waiting for a key.
        """
        result = StepResult(self.state, None, self.fault)
        for _ in range(count):
            result = self.step()
            if result.state != RunState.RUNNING:
                break
        return result

    def timer_tick(self) -> bool:
        """Decrement the delay and sound timers.

        Returns:
            The tone signal: ``True`` while the sound timer is active.
        """
        return self.timers.tick()

    # ------------------------------------------------------------------
    # Host interface
    # ------------------------------------------------------------------

    def set_key(self, index: int, pressed: bool) -> None:
        self.keypad.set_key(index, pressed)

    def set_keys(self, states: Sequence[bool]) -> None:
        self.keypad.set_all(states)

    def read_display(self) -> DisplaySnapshot:
        return self.display.snapshot()

    def acknowledge_display(self) -> None:
        self.display.acknowledge()

    @property
    def delay_t(self) -> int:
        return self.timers.delay

    @property
    def sound_t(self) -> int:
        return self.timers.sound

    @property
    def tone_active(self) -> bool:
        return self.timers.tone_active

    @property
    def waiting_for_key(self) -> bool:
        return self.state == RunState.WAITING_FOR_KEY

    @property
    def halted(self) -> bool:
        return self.state == RunState.HALTED

    # ------------------------------------------------------------------
    # Fetch / decode helpers
    # ------------------------------------------------------------------

    def _fetch(self) -> int:
        if self.pc > Memory.SIZE - 2:
            raise OutOfBoundsAccess(
                f"Program counter 0x{self.pc:X} is past the end of memory",
                address=self.pc,
            )
        high, low = self.memory.read_block(self.pc, 2)
        return (high << 8) | low

    def _resume_wait(self) -> StepResult:
        key = self.keypad.take_press()
        if key is None:
            return StepResult(self.state, self.opcode)
        self.v[self._wait_register] = key
        self._wait_register = None
        self.state = RunState.RUNNING
        self._next()
        self.cycle_count += 1
        return StepResult(self.state, self.opcode)

    def _next(self, skip: bool = False) -> None:
        self.pc = (self.pc + (4 if skip else 2)) & 0xFFFF

    def _unknown(self, opcode: int) -> None:
        if self.config.unknown_opcode == UnknownOpcodePolicy.SKIP:
            logger.warning("Skipping unknown opcode %04X at %03X", opcode, self.pc)
            self.opcode = opcode
            self._next()
            return
        raise DecodeError(f"Unknown opcode {opcode:04X}")

    def _build_dispatch_tables(self) -> List[Handler]:
        """Construct the 16-entry family table and the sub-tables behind it.

        Each entry takes the full opcode.  The ``opcode`` attribute is only
        updated once decoding has succeeded, so an unknown opcode leaves the
        machine state exactly as it was.
        """
        sys_ops: Dict[int, Handler] = {
            0x00E0: self.op_00e0,
            0x00EE: self.op_00ee,
        }
        alu_ops: Dict[int, Handler] = {
            0x0: self.op_8xy0,
            0x1: self.op_8xy1,
            0x2: self.op_8xy2,
            0x3: self.op_8xy3,
            0x4: self.op_8xy4,
            0x5: self.op_8xy5,
            0x6: self.op_8xy6,
            0x7: self.op_8xy7,
            0xE: self.op_8xye,
        }
        key_ops: Dict[int, Handler] = {
            0x9E: self.op_ex9e,
            0xA1: self.op_exa1,
        }
        misc_ops: Dict[int, Handler] = {
            0x07: self.op_fx07,
            0x0A: self.op_fx0a,
            0x15: self.op_fx15,
            0x18: self.op_fx18,
            0x1E: self.op_fx1e,
            0x29: self.op_fx29,
            0x33: self.op_fx33,
            0x55: self.op_fx55,
            0x65: self.op_fx65,
        }

        def lookup(table: Dict[int, Handler], mask: int) -> Handler:
            def _handler(opcode: int) -> None:
                op = table.get(opcode & mask)
                if op is None:
                    self._unknown(opcode)
                    return
                self.opcode = opcode
                op(opcode)
            return _handler

        def nibble_zero(op: Handler) -> Handler:
            def _handler(opcode: int) -> None:
                if opcode & 0xF:
                    self._unknown(opcode)
                    return
                self.opcode = opcode
                op(opcode)
            return _handler

        def direct(op: Handler) -> Handler:
            def _handler(opcode: int) -> None:
                self.opcode = opcode
                op(opcode)
            return _handler

        return [
            lookup(sys_ops, 0xFFFF),        # 0
            direct(self.op_1nnn),           # 1
            direct(self.op_2nnn),           # 2
            direct(self.op_3xnn),           # 3
            direct(self.op_4xnn),           # 4
            nibble_zero(self.op_5xy0),      # 5
            direct(self.op_6xnn),           # 6
            direct(self.op_7xnn),           # 7
            lookup(alu_ops, 0x000F),        # 8
            nibble_zero(self.op_9xy0),      # 9
            direct(self.op_annn),           # A
            direct(self.op_bnnn),           # B
            direct(self.op_cxnn),           # C
            direct(self.op_dxyn),           # D
            lookup(key_ops, 0x00FF),        # E
            lookup(misc_ops, 0x00FF),       # F
        ]

    # ==================================================================
    # Instruction handlers
    # ==================================================================

    # -- 0 family: screen and subroutine return -----------------------

    def op_00e0(self, opcode: int) -> None:
        """CLS"""
        self.display.clear()
        self._next()

    def op_00ee(self, opcode: int) -> None:
        """RET -- resume after the matching call."""
        self.pc = (self.stack.pop() + 2) & 0xFFFF

    # -- flow control ----------------------------------------------------

    def op_1nnn(self, opcode: int) -> None:
        self.pc = opcode & 0x0FFF

    def op_2nnn(self, opcode: int) -> None:
        """CALL -- the call site itself is pushed; RET adds 2."""
        self.stack.push(self.pc)
        self.pc = opcode & 0x0FFF

    def op_3xnn(self, opcode: int) -> None:
        self._next(self.v[(opcode >> 8) & 0xF] == opcode & 0xFF)

    def op_4xnn(self, opcode: int) -> None:
        self._next(self.v[(opcode >> 8) & 0xF] != opcode & 0xFF)

    def op_5xy0(self, opcode: int) -> None:
        self._next(self.v[(opcode >> 8) & 0xF] == self.v[(opcode >> 4) & 0xF])

    def op_9xy0(self, opcode: int) -> None:
        self._next(self.v[(opcode >> 8) & 0xF] != self.v[(opcode >> 4) & 0xF])

    def op_bnnn(self, opcode: int) -> None:
        self.pc = (self.v[0] + (opcode & 0x0FFF)) & 0xFFFF

    # -- register loads --------------------------------------------------

    def op_6xnn(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] = opcode & 0xFF
        self._next()

    def op_7xnn(self, opcode: int) -> None:
        # No carry: vF is untouched.
        x = (opcode >> 8) & 0xF
        self.v[x] = (self.v[x] + (opcode & 0xFF)) & 0xFF
        self._next()

    def op_annn(self, opcode: int) -> None:
        self.i = opcode & 0x0FFF
        self._next()

    def op_cxnn(self, opcode: int) -> None:
        value = int(self._rng.integers(0, 256))
        nn = opcode & 0xFF
        if self.config.random_mode == RandomMode.XOR:
            value ^= nn
        else:
            value &= nn
        self.v[(opcode >> 8) & 0xF] = value
        self._next()

    # -- 8 family: ALU ---------------------------------------------------
    #
    # Operands are read before anything is written, and vF is written
    # last so that it holds the flag even when X is F.

    def op_8xy0(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] = self.v[(opcode >> 4) & 0xF]
        self._next()

    def op_8xy1(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] |= self.v[(opcode >> 4) & 0xF]
        self._next()

    def op_8xy2(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] &= self.v[(opcode >> 4) & 0xF]
        self._next()

    def op_8xy3(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] ^= self.v[(opcode >> 4) & 0xF]
        self._next()

    def op_8xy4(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        total = self.v[x] + self.v[(opcode >> 4) & 0xF]
        self.v[x] = total & 0xFF
        self.v[FLAG] = 1 if total > 0xFF else 0
        self._next()

    def op_8xy5(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        a, b = self.v[x], self.v[(opcode >> 4) & 0xF]
        self.v[x] = (a - b) & 0xFF
        self.v[FLAG] = 1 if a >= b else 0
        self._next()

    def op_8xy6(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        src = self.v[(opcode >> 4) & 0xF] if self.config.shift_quirk else self.v[x]
        self.v[x] = src >> 1
        self.v[FLAG] = src & 0x01
        self._next()

    def op_8xy7(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        a, b = self.v[x], self.v[(opcode >> 4) & 0xF]
        self.v[x] = (b - a) & 0xFF
        self.v[FLAG] = 1 if b >= a else 0
        self._next()

    def op_8xye(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        src = self.v[(opcode >> 4) & 0xF] if self.config.shift_quirk else self.v[x]
        self.v[x] = (src << 1) & 0xFF
        self.v[FLAG] = (src >> 7) & 0x01
        self._next()

    # -- D: sprites ------------------------------------------------------

    def op_dxyn(self, opcode: int) -> None:
        x = self.v[(opcode >> 8) & 0xF]
        y = self.v[(opcode >> 4) & 0xF]
        rows = self.memory.read_block(self.i, opcode & 0xF)
        collision = self.display.draw_sprite(x, y, rows)
        self.v[FLAG] = 1 if collision else 0
        self._next()

    # -- E family: keypad ------------------------------------------------

    def op_ex9e(self, opcode: int) -> None:
        self._next(self.keypad.is_pressed(self.v[(opcode >> 8) & 0xF]))

    def op_exa1(self, opcode: int) -> None:
        self._next(not self.keypad.is_pressed(self.v[(opcode >> 8) & 0xF]))

    # -- F family: timers, index register, memory ------------------------

    def op_fx07(self, opcode: int) -> None:
        self.v[(opcode >> 8) & 0xF] = self.timers.delay
        self._next()

    def op_fx0a(self, opcode: int) -> None:
        """Block until a key is pressed.

        pc stays on this instruction; :meth:`_resume_wait` finishes it.
        """
        self._wait_register = (opcode >> 8) & 0xF
        self.keypad.arm()
        self.state = RunState.WAITING_FOR_KEY

    def op_fx15(self, opcode: int) -> None:
        self.timers.delay = self.v[(opcode >> 8) & 0xF]
        self._next()

    def op_fx18(self, opcode: int) -> None:
        self.timers.sound = self.v[(opcode >> 8) & 0xF]
        self._next()

    def op_fx1e(self, opcode: int) -> None:
        self.i = (self.i + self.v[(opcode >> 8) & 0xF]) & 0xFFFF
        self._next()

    def op_fx29(self, opcode: int) -> None:
        self.i = (self.v[(opcode >> 8) & 0xF] * Memory.GLYPH_BYTES) & 0xFFFF
        self._next()

    def op_fx33(self, opcode: int) -> None:
        value = self.v[(opcode >> 8) & 0xF]
        self.memory.write_block(self.i, (value // 100, (value // 10) % 10, value % 10))
        self._next()

    def op_fx55(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        self.memory.write_block(self.i, self.v[:x + 1])
        if self.config.load_store_quirk:
            self.i = (self.i + x + 1) & 0xFFFF
        self._next()

    def op_fx65(self, opcode: int) -> None:
        x = (opcode >> 8) & 0xF
        self.v[:x + 1] = list(self.memory.read_block(self.i, x + 1))
        if self.config.load_store_quirk:
            self.i = (self.i + x + 1) & 0xFFFF
        self._next()

    # ------------------------------------------------------------------
    # Serialisation helpers (save-state support)
    # ------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """Return a serialisable snapshot of the whole machine."""
        return {
            "v": list(self.v),
            "i": self.i,
            "pc": self.pc,
            "opcode": self.opcode,
            "stack": self.stack.frames(),
            "memory": self.memory.get_snapshot(),
            "display": self.display.get_snapshot(),
            "delay_t": self.timers.delay,
            "sound_t": self.timers.sound,
            "state": int(self.state),
            "wait_register": self._wait_register,
            "cycle_count": self.cycle_count,
        }

    def restore_snapshot(self, snapshot: dict) -> None:
        """Restore machine state from :meth:`get_snapshot` output.

        Every field is checked before anything is written, so a rejected
        snapshot leaves the machine untouched.

        Raises:
            ValueError: If the snapshot is malformed.
        """
        v = list(snapshot["v"])
        if len(v) != REGISTER_COUNT:
            raise ValueError(f"Expected {REGISTER_COUNT} registers, got {len(v)}")
        memory = snapshot["memory"]
        if len(memory) != Memory.SIZE:
            raise ValueError(
                f"Memory snapshot size mismatch: expected {Memory.SIZE}, got {len(memory)}"
            )
        display = snapshot["display"]
        display_size = DisplayBuffer.WIDTH * DisplayBuffer.HEIGHT
        if len(display) != display_size:
            raise ValueError(
                f"Display snapshot size mismatch: expected {display_size}, got {len(display)}"
            )
        frames = list(snapshot["stack"])
        if len(frames) > self.stack.capacity:
            raise ValueError(
                f"Snapshot stack depth {len(frames)} exceeds capacity {self.stack.capacity}"
            )
        state = RunState(snapshot.get("state", RunState.RUNNING))
        if state == RunState.HALTED:
            raise ValueError("Cannot restore a halted machine")
        wait_register = snapshot.get("wait_register")
        if state == RunState.WAITING_FOR_KEY:
            if wait_register is None or not 0 <= wait_register < REGISTER_COUNT:
                raise ValueError(f"Invalid wait register {wait_register!r}")
        else:
            wait_register = None

        self.memory.restore_snapshot(memory)
        self.display.restore_snapshot(display)
        self.stack.restore(frames)
        self.v = [value & 0xFF for value in v]
        self.i = snapshot["i"] & 0xFFFF
        self.pc = snapshot["pc"] & 0xFFFF
        self.opcode = snapshot.get("opcode", 0) & 0xFFFF
        self.timers.delay = snapshot.get("delay_t", 0)
        self.timers.sound = snapshot.get("sound_t", 0)
        self.cycle_count = snapshot.get("cycle_count", 0)
        self.fault = None
        self.state = state
        self._wait_register = wait_register
        if state == RunState.WAITING_FOR_KEY:
            self.keypad.arm()
        else:
            self.keypad.disarm()

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"pc=0x{self.pc:03X}, i=0x{self.i:03X}, "
            f"state={self.state.name}, cycles={self.cycle_count})"
        )
