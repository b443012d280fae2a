"""Memory model for the CHIP-8 interpreter."""

from typing import Iterable, Optional
from .errors import OutOfBounds
from .font import FONT_ADDRESS, FONT_SET

MEMORY_SIZE = 4096


class Memory:
    """Byte-addressed 4K memory with the hex font resident in low memory."""

    def __init__(
        self,
        size: int = MEMORY_SIZE,
        initial_values: Optional[dict[int, int]] = None,
    ):
        self.size = size
        self._data = bytearray(size)
        self.write_block(FONT_ADDRESS, FONT_SET)

        if initial_values:
            for addr, val in initial_values.items():
                if 0 <= addr < size:
                    self._data[addr] = val & 0xFF

    def _check_bounds(self, addr: int) -> None:
        """Check if address is within valid range."""
        if addr < 0 or addr >= self.size:
            raise OutOfBounds(addr)

    def read(self, addr: int) -> int:
        """Read byte from memory address."""
        self._check_bounds(addr)
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        """Write byte (masked to 8 bits) to memory address."""
        self._check_bounds(addr)
        self._data[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read big-endian 16-bit word at addr, addr+1."""
        self._check_bounds(addr)
        self._check_bounds(addr + 1)
        return (self._data[addr] << 8) | self._data[addr + 1]

    def read_block(self, addr: int, length: int) -> bytes:
        """Read length bytes starting at addr.

        The whole range is checked before anything is read; a failing read
        reports the last address of the requested range.
        """
        if length <= 0:
            return b""
        self._check_bounds(addr)
        self._check_bounds(addr + length - 1)
        return bytes(self._data[addr:addr + length])

    def write_block(self, addr: int, values: Iterable[int]) -> None:
        """Write a sequence of bytes starting at addr.

        Nothing is written if any byte would land outside memory.
        """
        data = bytes(v & 0xFF for v in values)
        if not data:
            return
        self._check_bounds(addr)
        self._check_bounds(addr + len(data) - 1)
        self._data[addr:addr + len(data)] = data

    def get_watched(self, addresses: list[int]) -> dict[str, int]:
        """Get values at watched addresses as hex-string-keyed dict."""
        result = {}
        for addr in addresses:
            if 0 <= addr < self.size:
                result[f"{addr:03X}"] = self._data[addr]
        return result

    def snapshot(self) -> bytes:
        """Return a copy of the entire memory."""
        return bytes(self._data)
