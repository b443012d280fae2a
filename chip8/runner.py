"""Headless program runner with tracing for the CHIP-8 interpreter."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional
from .devices import FrameBuffer, KEY_COUNT, Keypad
from .errors import Chip8Error, ErrorInfo, InputUnderflow
from .instructions import disassemble
from .machine import Chip8
from .rng import RandomSource

logger = logging.getLogger(__name__)

JUMP_KIND = 0x1


@dataclass
class RunOptions:
    """Options for program execution."""
    max_steps: int = 10000
    steps_per_tick: int = 10  # 600 Hz CPU against 60 Hz timers
    shift_uses_vy: bool = False
    seed: Optional[int] = None
    trace: bool = True
    trace_watch: list[int] = field(default_factory=list)
    trace_include_registers: bool = False
    trace_include_timers: bool = False
    input_keys: list[int] = field(default_factory=list)
    pressed_keys: list[int] = field(default_factory=list)
    stop_on_self_jump: bool = True

    def __post_init__(self):
        if self.steps_per_tick < 1:
            raise ValueError(f"steps_per_tick must be at least 1, got {self.steps_per_tick}")
        for key in (*self.input_keys, *self.pressed_keys):
            if not 0 <= key < KEY_COUNT:
                raise ValueError(f"Key code out of range: {key}")


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    opcode: int
    mem: dict[str, int]
    v: Optional[list[int]] = None
    i: Optional[int] = None
    delay_timer: Optional[int] = None
    sound_timer: Optional[int] = None
    instr_text: str = ""

    def to_dict(self, include_registers: bool, include_timers: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "opcode": f"{self.opcode:04X}",
            "mem": self.mem,
        }
        if include_registers:
            result["v"] = self.v
            result["i"] = self.i
        if include_timers:
            result["delay_timer"] = self.delay_timer
            result["sound_timer"] = self.sound_timer
        result["instr_text"] = self.instr_text
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    steps_executed: int
    final_state: dict
    screen: list[str]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "screen": self.screen,
            "trace_watch": self.trace_watch,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def run_program(
    rom: bytes,
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Run a CHIP-8 ROM headlessly.

    Args:
        rom: ROM image, loaded at 0x200
        options: Execution options

    Returns:
        RunResult with execution status, final state, screen and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0

    display = FrameBuffer()
    machine = Chip8(
        shift_uses_vy=options.shift_uses_vy,
        display=display,
        keypad=Keypad(pressed=options.pressed_keys),
        rng=RandomSource(options.seed),
    )
    input_keys = deque(options.input_keys)
    trace_watch = sorted(options.trace_watch)

    try:
        machine.load_rom(rom)
    except Chip8Error as e:
        return RunResult(
            status="error",
            steps_executed=0,
            final_state=machine.get_state(),
            screen=display.render(),
            trace_watch=trace_watch,
            trace=[],
            error=e.to_error_info(),
        )

    instr_addr = machine.cpu.pc

    try:
        while steps_executed < options.max_steps:
            if machine.is_waiting:
                if not input_keys:
                    raise InputUnderflow(
                        "Waiting for key with no input keys left",
                        step=steps_executed + 1,
                        addr=machine.cpu.pc,
                    )
                machine.resume_with_key(input_keys.popleft())

            instr_addr = machine.cpu.pc
            machine.step()
            steps_executed += 1

            if steps_executed % options.steps_per_tick == 0:
                machine.tick_timers()

            op = machine.last_opcode

            # Record trace
            if options.trace:
                row = TraceRow(
                    step=steps_executed,
                    addr=instr_addr,
                    opcode=op.raw,
                    mem=machine.memory.get_watched(trace_watch),
                    v=list(machine.cpu.v) if options.trace_include_registers else None,
                    i=machine.cpu.i if options.trace_include_registers else None,
                    delay_timer=machine.cpu.delay_timer if options.trace_include_timers else None,
                    sound_timer=machine.cpu.sound_timer if options.trace_include_timers else None,
                    instr_text=disassemble(op),
                )
                trace_rows.append(row.to_dict(
                    include_registers=options.trace_include_registers,
                    include_timers=options.trace_include_timers,
                ))

            # JP to itself is the usual way a CHIP-8 program stops
            if (
                options.stop_on_self_jump
                and op.kind == JUMP_KIND
                and machine.cpu.pc == instr_addr
            ):
                logger.debug(f"Self jump at {instr_addr:#05x}, stopping")
                break

    except Chip8Error as e:
        # Attach context to error
        e.step = steps_executed + 1
        e.addr = instr_addr
        logger.warning(f"Execution stopped at step {e.step}: {e.message}")
        error_info = e.to_error_info()

    return RunResult(
        status="ok" if error_info is None else "error",
        steps_executed=steps_executed,
        final_state=machine.get_state(),
        screen=display.render(),
        trace_watch=trace_watch,
        trace=trace_rows,
        error=error_info,
    )
