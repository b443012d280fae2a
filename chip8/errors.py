"""Custom exceptions for the CHIP-8 interpreter."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    step: int
    addr: int
    opcode: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "opcode": self.opcode,
        }


class Chip8Error(Exception):
    """Base exception for all CHIP-8 errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        opcode: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.opcode = opcode

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            opcode=self.opcode,
        )


class Chip8RuntimeError(Chip8Error):
    """Error during instruction execution. Fatal to the current step."""
    pass


class UnimplementedOpcode(Chip8RuntimeError):
    """No dispatch pattern matched the fetched opcode."""

    def __init__(self, opcode: int, pc: int):
        super().__init__(
            f"Opcode {opcode:04X} not implemented at {pc:03X}",
            addr=pc,
            opcode=opcode,
        )
        self.pc = pc


class StackUnderflow(Chip8RuntimeError):
    """Return executed with an empty call stack."""
    pass


class StackOverflow(Chip8RuntimeError):
    """Call executed with a full call stack."""
    pass


class OutOfBounds(Chip8RuntimeError):
    """Memory address outside the 4K address space."""

    def __init__(self, address: int):
        super().__init__(f"Memory address out of range: {address:#05x}")
        self.address = address


class InputUnderflow(Chip8RuntimeError):
    """Wait-for-key reached with no scripted key left to feed."""
    pass


class RomTooLarge(Chip8Error):
    """ROM image does not fit between the load address and end of memory."""
    pass
