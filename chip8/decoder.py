"""Opcode fetch and decode for the CHIP-8 interpreter."""

from dataclasses import dataclass
from .memory import Memory


@dataclass(frozen=True)
class Opcode:
    """A 16-bit instruction word split into its operand views.

    For opcode 0xDXYN: kind=D, x=X, y=Y, n=N, nn=YN, nnn=XYN.
    """
    raw: int

    @property
    def kind(self) -> int:
        return (self.raw & 0xF000) >> 12

    @property
    def x(self) -> int:
        return (self.raw & 0x0F00) >> 8

    @property
    def y(self) -> int:
        return (self.raw & 0x00F0) >> 4

    @property
    def n(self) -> int:
        return self.raw & 0x000F

    @property
    def nn(self) -> int:
        return self.raw & 0x00FF

    @property
    def nnn(self) -> int:
        return self.raw & 0x0FFF

    @property
    def nibbles(self) -> tuple[int, int, int, int]:
        return (self.kind, self.x, self.y, self.n)

    def __str__(self) -> str:
        return f"{self.raw:04X}"


def decode(raw: int) -> Opcode:
    """Decode a 16-bit word."""
    return Opcode(raw & 0xFFFF)


def fetch(mem: Memory, pc: int) -> Opcode:
    """Read the big-endian opcode at pc, pc+1.

    Raises OutOfBounds if either byte lies outside memory.
    """
    return decode(mem.read_word(pc))
