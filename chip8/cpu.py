"""CPU state model for the CHIP-8 interpreter."""

from typing import Optional
from .errors import StackOverflow, StackUnderflow

PROGRAM_START = 0x200
REGISTER_COUNT = 16
STACK_SIZE = 16
FLAG = 0xF


class CPU:
    """Register file, call stack, timers and wait-for-key state."""

    def __init__(self, shift_uses_vy: bool = False):
        self._shift_uses_vy = shift_uses_vy

        # Registers
        self.v: list[int] = [0] * REGISTER_COUNT
        self.i: int = 0
        self.pc: int = PROGRAM_START
        self.stack: list[int] = []

        # Timers, decremented by the host at 60 Hz
        self.delay_timer: int = 0
        self.sound_timer: int = 0

        # Register awaiting a key release, None while running
        self.waiting_register: Optional[int] = None

    @property
    def shift_uses_vy(self) -> bool:
        """Shift instructions read VY (COSMAC VIP) instead of VX."""
        return self._shift_uses_vy

    @property
    def is_waiting(self) -> bool:
        return self.waiting_register is not None

    def set_register(self, index: int, value: int) -> None:
        """Set Vn with 8-bit wraparound."""
        self.v[index] = value & 0xFF

    def set_flag(self, value: int) -> None:
        """Set VF to 0 or 1."""
        self.v[FLAG] = 1 if value else 0

    def set_i(self, value: int) -> None:
        """Set I with 16-bit wraparound."""
        self.i = value & 0xFFFF

    def push(self, addr: int) -> None:
        """Push a return address onto the call stack."""
        if len(self.stack) >= STACK_SIZE:
            raise StackOverflow(f"Call stack full ({STACK_SIZE} entries)")
        self.stack.append(addr)

    def pop(self) -> int:
        """Pop a return address from the call stack."""
        if not self.stack:
            raise StackUnderflow("Return with empty call stack")
        return self.stack.pop()

    def tick_timers(self) -> None:
        """Decrement both timers toward zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "v": list(self.v),
            "i": self.i,
            "pc": self.pc,
            "stack": list(self.stack),
            "delay_timer": self.delay_timer,
            "sound_timer": self.sound_timer,
            "waiting_register": self.waiting_register,
        }

    def reset(self, start_address: int = PROGRAM_START) -> None:
        """Reset registers, stack, PC, I and wait state. Timers are kept."""
        self.v = [0] * REGISTER_COUNT
        self.i = 0
        self.pc = start_address
        self.stack = []
        self.waiting_register = None
