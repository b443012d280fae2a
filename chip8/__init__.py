"""CHIP-8 Interpreter Core Package."""

from .machine import Chip8
from .runner import run_program, RunOptions, RunResult
from .errors import (
    Chip8Error,
    Chip8RuntimeError,
    UnimplementedOpcode,
    StackUnderflow,
    StackOverflow,
    OutOfBounds,
    InputUnderflow,
    RomTooLarge,
)

__all__ = [
    "Chip8",
    "run_program",
    "RunOptions",
    "RunResult",
    "Chip8Error",
    "Chip8RuntimeError",
    "UnimplementedOpcode",
    "StackUnderflow",
    "StackOverflow",
    "OutOfBounds",
    "InputUnderflow",
    "RomTooLarge",
]
