"""ROM loading for the CHIP-8 interpreter."""

import logging
from pathlib import Path
from typing import Union

from .cpu import PROGRAM_START
from .errors import RomTooLarge
from .memory import Memory

logger = logging.getLogger(__name__)


def load_rom(mem: Memory, data: bytes, address: int = PROGRAM_START) -> int:
    """Copy a ROM image into memory starting at address.

    Returns:
        Number of bytes written

    Raises:
        RomTooLarge: if the image would run past the end of memory
    """
    capacity = mem.size - address
    if len(data) > capacity:
        raise RomTooLarge(
            f"ROM is {len(data)} bytes, only {capacity} fit at {address:#05x}",
            addr=address,
        )
    mem.write_block(address, data)
    logger.debug(f"Loaded {len(data)} byte ROM at {address:#05x}")
    return len(data)


def read_rom_file(path: Union[str, Path]) -> bytes:
    """Read a ROM image from disk."""
    return Path(path).read_bytes()
