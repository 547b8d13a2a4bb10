"""
CHIP-8 Engine Tests
===================

Run-state handling around the instruction set: faults, the halted state,
batch execution, timers and save states.
"""

import pytest

from yaci.core import (
    Chip8,
    Chip8Config,
    DecodeError,
    LoadError,
    OutOfBoundsAccess,
    RunState,
    StackOverflow,
    StackUnderflow,
    UnknownOpcodePolicy,
)

from conftest import assemble


# =============================================================================
# Construction
# =============================================================================

class TestPowerOn:
    """Initial state of a fresh machine."""

    def test_initial_registers(self, make_machine):
        """pc starts at 0x200 with everything else cleared."""
        m = make_machine(0x00E0)
        assert m.pc == 0x200
        assert m.i == 0
        assert m.v == [0] * 16
        assert m.stack.depth == 0
        assert m.state == RunState.RUNNING

    def test_display_needs_first_redraw(self, make_machine):
        """A freshly loaded machine asks for a full redraw."""
        assert make_machine(0x00E0).read_display().redraw is True

    def test_oversized_rom(self):
        """A ROM larger than the program area is refused."""
        with pytest.raises(LoadError):
            Chip8(Chip8Config(), bytes(3585))

    def test_step_reports_opcode(self, make_machine):
        """The result carries the executed instruction."""
        result = make_machine(0x6123).step()
        assert result.ok
        assert result.opcode == 0x6123
        assert result.state == RunState.RUNNING


# =============================================================================
# Decode faults
# =============================================================================

class TestDecodeFaults:
    """Opcodes outside the instruction set."""

    @pytest.mark.parametrize("opcode", [0xFFFF, 0x0123, 0x5121, 0x9123, 0x8128, 0xE100])
    def test_unknown_opcode_halts(self, make_machine, opcode):
        """Unknown opcodes fault without touching any state."""
        m = make_machine(opcode)
        result = m.step()
        assert isinstance(result.fault, DecodeError)
        assert result.state == RunState.HALTED
        assert result.fault.pc == 0x200
        assert result.fault.opcode == opcode
        assert m.pc == 0x200
        assert m.v == [0] * 16
        assert m.i == 0

    def test_skip_policy(self, make_machine):
        """With the lenient policy the opcode is skipped."""
        config = Chip8Config(seed=1, unknown_opcode=UnknownOpcodePolicy.SKIP)
        m = make_machine(0xFFFF, 0x6001, config=config)
        assert m.step().ok
        assert m.pc == 0x202
        m.step()
        assert m.v[0] == 1


# =============================================================================
# Stack faults
# =============================================================================

class TestStackFaults:
    """Calls and returns at the stack limits."""

    def test_return_on_empty_stack(self, make_machine):
        """00EE with nothing to return to halts with pc unchanged."""
        m = make_machine(0x00EE)
        result = m.step()
        assert isinstance(result.fault, StackUnderflow)
        assert m.pc == 0x200

    def test_seventeenth_call_overflows(self, make_machine):
        """A self-call loop overflows on the 17th step."""
        m = make_machine(0x2200)
        for _ in range(16):
            assert m.step().ok
        result = m.step()
        assert isinstance(result.fault, StackOverflow)
        assert m.stack.depth == 16
        assert m.pc == 0x200


# =============================================================================
# Bounds faults
# =============================================================================

class TestBoundsFaults:
    """Accesses that run off the end of memory."""

    def test_fetch_past_end(self, make_machine):
        """Jumping to 0xFFF faults on the next fetch."""
        m = make_machine(0x1FFF)
        assert m.step().ok
        result = m.step()
        assert isinstance(result.fault, OutOfBoundsAccess)
        assert result.fault.opcode is None
        assert result.fault.pc == 0xFFF

    def test_sprite_read_past_end(self, make_machine):
        """DXYN with i near the top faults and leaves the display alone."""
        m = make_machine(0xAFFE, 0xD005)
        m.step()
        m.acknowledge_display()
        result = m.step()
        assert isinstance(result.fault, OutOfBoundsAccess)
        assert m.display.lit_count() == 0
        assert m.read_display().redraw is False

    def test_bcd_write_past_end(self, make_machine):
        """FX33 at 0xFFF faults before writing any digit."""
        m = make_machine(0x60FF, 0xAFFF, 0xF033)
        m.run_cycles(2)
        result = m.step()
        assert isinstance(result.fault, OutOfBoundsAccess)
        assert m.memory.read(0xFFF) == 0

    def test_store_past_end(self, make_machine):
        """FX55 that would spill past 0xFFF faults."""
        m = make_machine(0xAFFE, 0xF255)
        m.step()
        assert isinstance(m.step().fault, OutOfBoundsAccess)


# =============================================================================
# Halted state
# =============================================================================

class TestHalted:
    """Behaviour after a fault."""

    def test_fault_is_sticky(self, make_machine):
        """Further steps repeat the same fault and change nothing."""
        m = make_machine(0x00EE)
        first = m.step()
        second = m.step()
        assert second.fault is first.fault
        assert m.halted
        assert m.pc == 0x200

    def test_reset_clears_fault(self, make_machine):
        """reset() returns to the power-on state with the ROM intact."""
        m = make_machine(0x6005, 0x00EE)
        m.run_cycles(2)
        assert m.halted
        m.reset()
        assert m.state == RunState.RUNNING
        assert m.fault is None
        assert m.v[0] == 0
        assert m.step().ok
        assert m.v[0] == 5


# =============================================================================
# Batch execution and timers
# =============================================================================

class TestRunCycles:
    """run_cycles and timer_tick."""

    def test_runs_requested_count(self, make_machine):
        """A tight loop runs exactly the requested number of cycles."""
        m = make_machine(0x7001, 0x1200)
        result = m.run_cycles(10)
        assert result.ok
        assert m.cycle_count == 10
        assert m.v[0] == 5

    def test_stops_when_waiting(self, make_machine):
        """Execution pauses at FX0A."""
        m = make_machine(0x6001, 0xF00A, 0x6002)
        result = m.run_cycles(10)
        assert result.state == RunState.WAITING_FOR_KEY
        assert m.pc == 0x202
        assert m.v[0] == 1

    def test_stops_on_fault(self, make_machine):
        """Execution stops at the faulting instruction."""
        m = make_machine(0x6001, 0x00EE, 0x6002)
        result = m.run_cycles(10)
        assert result.halted
        assert m.v[0] == 1
        assert m.pc == 0x202

    def test_timer_tick_reports_tone(self, make_machine):
        """timer_tick returns whether the beeper should sound."""
        m = make_machine(0x6002, 0xF018)
        m.run_cycles(2)
        assert m.timer_tick() is True
        assert m.timer_tick() is True
        assert m.timer_tick() is False
        assert m.sound_t == 0


# =============================================================================
# Save states
# =============================================================================

class TestSnapshot:
    """get_snapshot / restore_snapshot."""

    def test_round_trip(self, make_machine):
        """A restored machine continues exactly where the original was."""
        m = make_machine(0x6007, 0xA000, 0xD015, 0x2208, 0x7001, 0x00EE)
        m.run_cycles(5)
        saved = m.get_snapshot()

        other = Chip8(Chip8Config(seed=1234), assemble(0x00E0))
        other.restore_snapshot(saved)
        assert other.v == m.v
        assert other.i == m.i
        assert other.pc == m.pc
        assert other.stack.frames() == m.stack.frames()
        assert other.display.lit_count() == m.display.lit_count()

        m.step()
        other.step()
        assert other.pc == m.pc == 0x208

    def test_waiting_snapshot_resumes(self, make_machine):
        """A machine saved during FX0A is still waiting after restore."""
        m = make_machine(0xF40A)
        m.step()
        other = Chip8(Chip8Config(), assemble(0x00E0))
        other.restore_snapshot(m.get_snapshot())
        assert other.waiting_for_key
        other.set_key(9, True)
        other.step()
        assert other.v[4] == 9

    def test_halted_snapshot_rejected(self, make_machine):
        """Halted machines cannot be restored."""
        m = make_machine(0x00EE)
        m.step()
        with pytest.raises(ValueError):
            Chip8().restore_snapshot(m.get_snapshot())

    def test_rejected_snapshot_changes_nothing(self, make_machine):
        """A snapshot with a bad display size is refused before any write."""
        saved = make_machine(0x6001).get_snapshot()
        saved["memory"] = bytes([0xAB]) * 4096
        saved["display"] = bytes(10)

        m = make_machine(0x00E0)
        with pytest.raises(ValueError):
            m.restore_snapshot(saved)
        assert m.memory.read(0x200) == 0x00
        assert m.memory.read(0x201) == 0xE0

    def test_deep_stack_snapshot_changes_nothing(self, make_machine):
        """Too many stack frames are refused before memory is touched."""
        saved = make_machine(0x6001).get_snapshot()
        saved["stack"] = [0x200] * 17

        m = make_machine(0x00E0)
        with pytest.raises(ValueError):
            m.restore_snapshot(saved)
        assert m.memory.read(0x201) == 0xE0
        assert m.stack.depth == 0

    @pytest.mark.parametrize("register", [None, -1, 16, 20])
    def test_bad_wait_register_rejected(self, make_machine, register):
        """A waiting snapshot must name a register in 0..15."""
        m = make_machine(0xF40A)
        m.step()
        saved = m.get_snapshot()
        saved["wait_register"] = register

        other = Chip8(Chip8Config(), assemble(0x00E0))
        with pytest.raises(ValueError):
            other.restore_snapshot(saved)
        assert other.state == RunState.RUNNING
        other.set_key(3, True)
        assert other.step().ok
