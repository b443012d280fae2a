"""CHIP-8 machine: owns the state and drives fetch-decode-execute."""

import logging
from pathlib import Path
from typing import Optional, Union

from .cpu import CPU, PROGRAM_START
from .decoder import Opcode, fetch
from .devices import AudioSink, DisplaySink, IOBus, KEY_COUNT, KeypadSource
from .instructions import execute_instruction
from .loader import load_rom, read_rom_file
from .memory import Memory
from .rng import ByteSource

logger = logging.getLogger(__name__)


class Chip8:
    """A CHIP-8 virtual machine.

    The host calls step() once per CPU cycle and tick_timers() at 60 Hz.
    While the machine waits for a key (Fx0A) step() does nothing; the host
    resumes it with resume_with_key() when a key is released, or lets
    poll_keypad() pull the next release from the default keypad.

    Execution errors are raised from step() as Chip8RuntimeError subclasses.
    The failing instruction leaves the program counter where it was, so the
    host may halt, reset() or skip past it as it sees fit.
    """

    def __init__(
        self,
        shift_uses_vy: bool = False,
        display: Optional[DisplaySink] = None,
        keypad: Optional[KeypadSource] = None,
        audio: Optional[AudioSink] = None,
        rng: Optional[ByteSource] = None,
    ):
        self.cpu = CPU(shift_uses_vy=shift_uses_vy)
        self.memory = Memory()
        self.io = IOBus(display=display, keypad=keypad, audio=audio, rng=rng)
        self.cycles = 0
        self.last_opcode: Optional[Opcode] = None

    @property
    def display(self) -> DisplaySink:
        return self.io.display

    @property
    def keypad(self) -> KeypadSource:
        return self.io.keypad

    @property
    def audio(self) -> AudioSink:
        return self.io.audio

    @property
    def is_waiting(self) -> bool:
        return self.cpu.is_waiting

    def load_rom(self, data: bytes) -> int:
        """Load a ROM image at the program start address."""
        return load_rom(self.memory, data, PROGRAM_START)

    def load_rom_file(self, path: Union[str, Path]) -> int:
        return self.load_rom(read_rom_file(path))

    def step(self) -> None:
        """Execute one instruction, or idle while waiting for a key."""
        self.cycles += 1
        if self.cpu.is_waiting:
            return

        op = fetch(self.memory, self.cpu.pc)
        self.last_opcode = op
        new_pc = execute_instruction(op, self.cpu, self.memory, self.io)

        if new_pc is not None:
            self.cpu.pc = new_pc
        else:
            self.cpu.pc += 2

        if self.cpu.is_waiting:
            logger.debug(
                f"Waiting for key into V{self.cpu.waiting_register:X} at {self.cpu.pc:#05x}"
            )

    def tick_timers(self) -> None:
        """Decrement delay and sound timers. Call at 60 Hz."""
        self.cpu.tick_timers()
        self.io.audio.update(self.cpu.sound_timer)

    def resume_with_key(self, key: int) -> bool:
        """Deliver a released key to a pending wait-for-key instruction.

        Returns:
            True if the machine was waiting and has resumed, False otherwise
        """
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key code out of range: {key}")
        register = self.cpu.waiting_register
        if register is None:
            logger.debug(f"Ignoring key {key:X}: not waiting for input")
            return False
        self.cpu.set_register(register, key)
        self.cpu.waiting_register = None
        self.cpu.pc += 2
        logger.debug(f"Resumed with key {key:X} in V{register:X}")
        return True

    def poll_keypad(self) -> bool:
        """Resume from the keypad's next queued release event, if any."""
        if not self.cpu.is_waiting:
            return False
        next_release = getattr(self.io.keypad, "next_release", None)
        if next_release is None:
            return False
        key = next_release()
        if key is None:
            return False
        return self.resume_with_key(key)

    def reset(self) -> None:
        """Soft reset: registers, stack, PC and I return to power-on values.

        Memory (font and loaded program) is kept.
        """
        self.cpu.reset(PROGRAM_START)
        self.last_opcode = None
        logger.debug("Soft reset")

    def get_state(self) -> dict:
        state = self.cpu.get_state()
        state["cycles"] = self.cycles
        return state
