"""Tests for the headless runner."""

import pytest
from chip8 import run_program, RunOptions


def program(*words: int) -> bytes:
    """Assemble words at 0x200 and append a jump-to-self."""
    halt = 0x1000 | (0x200 + 2 * len(words))
    return b"".join(w.to_bytes(2, "big") for w in (*words, halt))


class TestRunner:
    """Test runner behavior."""

    def test_stops_on_self_jump(self):
        """A jump to itself ends the run normally."""
        result = run_program(program(0x6001, 0x6102))
        assert result.status == "ok"
        assert result.steps_executed == 3
        assert result.final_state["pc"] == 0x204

    def test_step_budget(self):
        """Without a halt the run ends at max_steps without error."""
        opts = RunOptions(max_steps=5)
        result = run_program(program(0x7001, 0x1200), options=opts)
        assert result.status == "ok"
        assert result.steps_executed == 5
        assert result.final_state["v"][0] == 3

    def test_self_jump_detection_can_be_disabled(self):
        """With detection off the self-jump spins until the budget runs out."""
        opts = RunOptions(max_steps=7, stop_on_self_jump=False)
        result = run_program(program(0x6001), options=opts)
        assert result.status == "ok"
        assert result.steps_executed == 7

    def test_timer_cadence(self):
        """Timers tick once every steps_per_tick steps."""
        opts = RunOptions(max_steps=21, steps_per_tick=10, stop_on_self_jump=False)
        result = run_program(program(0x6010, 0xF015), options=opts)
        assert result.final_state["delay_timer"] == 0x10 - 2

    def test_trace_generation(self):
        """Trace rows follow each executed instruction."""
        opts = RunOptions(trace_watch=[0x300])
        result = run_program(program(0x6005, 0xA300, 0xF055), options=opts)
        assert result.status == "ok"
        assert len(result.trace) == 4
        assert result.trace[0] == {
            "step": 1,
            "addr": 0x200,
            "opcode": "6005",
            "mem": {"300": 0},
            "instr_text": "LD V0, 0x05",
        }
        assert result.trace[2]["mem"]["300"] == 5
        assert result.trace[3]["instr_text"] == "JP 0x206"

    def test_trace_registers_and_timers(self):
        """Optional trace columns."""
        opts = RunOptions(trace_include_registers=True, trace_include_timers=True)
        result = run_program(program(0x6307, 0xA123), options=opts)
        row = result.trace[1]
        assert row["v"][3] == 7
        assert row["i"] == 0x123
        assert row["delay_timer"] == 0
        assert row["sound_timer"] == 0

    def test_trace_disabled(self):
        """No trace rows when tracing is off."""
        result = run_program(program(0x6001), options=RunOptions(trace=False))
        assert result.trace == []

    def test_trace_watch_sorted_in_result(self):
        """trace_watch is echoed back in order."""
        opts = RunOptions(trace_watch=[0x302, 0x300])
        result = run_program(program(), options=opts)
        assert result.trace_watch == [0x300, 0x302]

    def test_shift_quirk_option(self):
        """shift_uses_vy is passed to the machine."""
        rom = program(0x6004, 0x6102, 0x8016)
        assert run_program(rom).final_state["v"][0] == 2
        assert run_program(rom, RunOptions(shift_uses_vy=True)).final_state["v"][0] == 1

    def test_seed_makes_rnd_repeatable(self):
        """Same seed, same random results."""
        rom = program(0xC0FF, 0xC1FF, 0xC2FF)
        a = run_program(rom, RunOptions(seed=7))
        b = run_program(rom, RunOptions(seed=7))
        assert a.final_state["v"][:3] == b.final_state["v"][:3]

    def test_input_keys_feed_waits(self):
        """Each wait-for-key consumes the next scripted key."""
        opts = RunOptions(input_keys=[4, 9])
        result = run_program(program(0xF00A, 0xF10A), options=opts)
        assert result.status == "ok"
        assert result.final_state["v"][:2] == [4, 9]

    def test_input_underflow(self):
        """Waiting with no keys left is an error."""
        result = run_program(program(0xF00A, 0x6101), options=RunOptions(input_keys=[]))
        assert result.status == "error"
        assert result.error.type == "InputUnderflow"
        assert result.error.addr == 0x200
        assert result.steps_executed == 1


class TestOptionValidation:
    """Bad options are rejected before anything runs."""

    def test_steps_per_tick_must_be_positive(self):
        """Zero steps per tick is refused."""
        with pytest.raises(ValueError, match="steps_per_tick"):
            RunOptions(steps_per_tick=0)

    @pytest.mark.parametrize("field_name", ["input_keys", "pressed_keys"])
    @pytest.mark.parametrize("key", [16, -1])
    def test_key_codes_must_be_hex_digits(self, field_name, key):
        """Scripted and held keys must be 0..F."""
        with pytest.raises(ValueError, match="Key code out of range"):
            RunOptions(**{field_name: [3, key]})

    def test_valid_keys_accepted(self):
        """Every key 0..F is allowed."""
        opts = RunOptions(input_keys=list(range(16)), pressed_keys=[0, 0xF])
        assert opts.input_keys[-1] == 0xF


class TestErrors:
    """Execution errors become error results."""

    def test_unimplemented_opcode(self):
        """Unknown opcode reports opcode, address and step."""
        result = run_program(program(0x6001, 0x0123))
        assert result.status == "error"
        assert result.error.type == "UnimplementedOpcode"
        assert result.error.opcode == 0x0123
        assert result.error.addr == 0x202
        assert result.error.step == 2
        assert result.steps_executed == 1
        assert result.final_state["pc"] == 0x202

    def test_stack_underflow(self):
        """Return from top level is an error."""
        result = run_program(program(0x00EE))
        assert result.error.type == "StackUnderflow"

    def test_stack_overflow(self):
        """Unbounded recursion overflows after 16 calls."""
        result = run_program(program(0x2200))
        assert result.error.type == "StackOverflow"
        assert result.steps_executed == 16

    def test_out_of_bounds(self):
        """Sprite read past memory is an error."""
        result = run_program(program(0xAFFF, 0xD01F))
        assert result.error.type == "OutOfBounds"

    def test_empty_rom(self):
        """Zeroed memory at 0x200 is not an instruction."""
        result = run_program(b"")
        assert result.error.type == "UnimplementedOpcode"

    def test_rom_too_large(self):
        """Oversized ROMs are rejected before running."""
        result = run_program(bytes(4000))
        assert result.status == "error"
        assert result.error.type == "RomTooLarge"
        assert result.steps_executed == 0

    def test_wraparound_is_not_an_error(self):
        """8-bit and 16-bit wraparound run cleanly."""
        result = run_program(program(0x60FF, 0x7001, 0x61FF, 0x8014, 0xAFFF, 0xF11E))
        assert result.status == "ok"
        assert result.final_state["v"][0] == 0xFF
        assert result.final_state["i"] == 0x10FE


class TestAPIFormat:
    """Test result format."""

    def test_success_result_format(self):
        """Success result has correct structure."""
        d = run_program(program(0x6005)).to_dict()
        assert d["status"] == "ok"
        for key in ("steps_executed", "final_state", "screen", "trace_watch", "trace"):
            assert key in d
        assert "error" not in d
        assert len(d["screen"]) == 32
        for key in ("v", "i", "pc", "stack", "delay_timer", "sound_timer", "waiting_register"):
            assert key in d["final_state"]

    def test_error_result_format(self):
        """Error result has correct structure."""
        d = run_program(program(0xFFFF)).to_dict()
        assert d["status"] == "error"
        assert d["error"]["type"] == "UnimplementedOpcode"
        for key in ("message", "step", "addr", "opcode"):
            assert key in d["error"]
