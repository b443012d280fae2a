"""Tests for the Memory module."""

import pytest
from chip8.memory import Memory, MEMORY_SIZE
from chip8.errors import OutOfBounds
from chip8.font import FONT_SET, glyph_address


class TestMemory:
    """Memory module tests."""

    def test_size(self):
        """Memory is 4K."""
        mem = Memory()
        assert mem.size == MEMORY_SIZE == 4096
        assert len(mem.snapshot()) == 4096

    def test_font_resident(self):
        """Font glyphs are copied into low memory at construction."""
        mem = Memory()
        assert mem.read_block(0, len(FONT_SET)) == FONT_SET
        assert mem.read_block(glyph_address(0xA), 5) == bytes([0xF0, 0x90, 0xF0, 0x90, 0x90])

    def test_program_area_zeroed(self):
        """Everything above the font starts at zero."""
        mem = Memory()
        assert set(mem.snapshot()[len(FONT_SET):]) == {0}

    def test_write_and_read(self):
        """Can write and read back values."""
        mem = Memory()
        mem.write(0x300, 42)
        assert mem.read(0x300) == 42

    def test_write_masks_to_byte(self):
        """Values wider than 8 bits are masked."""
        mem = Memory()
        mem.write(0x300, 0x1FF)
        assert mem.read(0x300) == 0xFF

    def test_bounds_check_read(self):
        """Reading out of bounds raises error."""
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.read(4096)
        with pytest.raises(OutOfBounds):
            mem.read(-1)

    def test_bounds_check_write(self):
        """Writing out of bounds raises error."""
        mem = Memory()
        with pytest.raises(OutOfBounds) as exc:
            mem.write(0x1000, 0)
        assert exc.value.address == 0x1000

    def test_read_word_big_endian(self):
        """Words are read high byte first."""
        mem = Memory()
        mem.write_block(0x200, [0x12, 0x34])
        assert mem.read_word(0x200) == 0x1234

    def test_read_word_last_byte(self):
        """A word starting at the last byte is out of bounds."""
        mem = Memory()
        with pytest.raises(OutOfBounds) as exc:
            mem.read_word(0xFFF)
        assert exc.value.address == 0x1000

    def test_read_block_past_end(self):
        """Block reads crossing the end of memory fail."""
        mem = Memory()
        assert mem.read_block(0xFFE, 2) == b"\x00\x00"
        with pytest.raises(OutOfBounds):
            mem.read_block(0xFFE, 3)

    def test_read_block_empty(self):
        """Zero-length read returns nothing."""
        mem = Memory()
        assert mem.read_block(0x5000, 0) == b""

    def test_write_block_is_atomic(self):
        """A block write that would overflow writes nothing."""
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.write_block(0xFFE, [1, 2, 3])
        assert mem.read(0xFFE) == 0
        assert mem.read(0xFFF) == 0

    def test_initial_values(self):
        """Memory can be initialized with values."""
        mem = Memory(initial_values={0x300: 10, 0x301: 0x1AB})
        assert mem.read(0x300) == 10
        assert mem.read(0x301) == 0xAB

    def test_get_watched(self):
        """Get watched addresses as hex-keyed dict."""
        mem = Memory(initial_values={0x300: 1, 0x301: 5})
        watched = mem.get_watched([0x300, 0x301, 0x302, 0x5000])
        assert watched == {"300": 1, "301": 5, "302": 0}

    def test_snapshot(self):
        """Snapshot returns copy of memory."""
        mem = Memory()
        snap = mem.snapshot()
        mem.write(0x300, 7)
        assert snap[0x300] == 0
