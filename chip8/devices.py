"""Host-facing device interfaces and headless default implementations."""

from collections import deque
from typing import Optional, Protocol, Sequence

from .rng import ByteSource, RandomSource

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
KEY_COUNT = 16


class DisplaySink(Protocol):
    def clear(self) -> None:
        ...

    def draw(self, x: int, y: int, rows: Sequence[int]) -> bool:
        ...


class KeypadSource(Protocol):
    def is_pressed(self, key: int) -> bool:
        ...


class AudioSink(Protocol):
    def update(self, sound_timer: int) -> None:
        ...


def _check_key(key: int) -> None:
    if not 0 <= key < KEY_COUNT:
        raise ValueError(f"Key code out of range: {key}")


class FrameBuffer:
    """Monochrome pixel grid with XOR sprite drawing.

    Sprites are 8 pixels wide, one byte per row, most significant bit on the
    left. Pixels falling past the right or bottom edge are clipped.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height)

    def clear(self) -> None:
        self._pixels = bytearray(self.width * self.height)

    def draw(self, x: int, y: int, rows: Sequence[int]) -> bool:
        """XOR rows onto the grid at (x, y); True if any set pixel was unset."""
        collision = False
        for dy, row in enumerate(rows):
            py = y + dy
            if py >= self.height:
                break
            for dx in range(8):
                px = x + dx
                if px >= self.width:
                    break
                if not (row >> (7 - dx)) & 1:
                    continue
                offset = py * self.width + px
                if self._pixels[offset]:
                    collision = True
                self._pixels[offset] ^= 1
        return collision

    def pixel(self, x: int, y: int) -> bool:
        return bool(self._pixels[y * self.width + x])

    def rows(self) -> list[list[int]]:
        return [
            list(self._pixels[y * self.width:(y + 1) * self.width])
            for y in range(self.height)
        ]

    def render(self, on: str = "#", off: str = ".") -> list[str]:
        """Render the grid as one string per row."""
        return ["".join(on if p else off for p in row) for row in self.rows()]


class Keypad:
    """Sixteen-key hex keypad state with a queue of release events."""

    def __init__(self, pressed: Optional[Sequence[int]] = None):
        self._pressed = [False] * KEY_COUNT
        self._releases: deque[int] = deque()
        for key in pressed or ():
            self.press(key)

    def press(self, key: int) -> None:
        _check_key(key)
        self._pressed[key] = True

    def release(self, key: int) -> None:
        """Mark key up and queue a release event if it was down."""
        _check_key(key)
        if self._pressed[key]:
            self._pressed[key] = False
            self._releases.append(key)

    def is_pressed(self, key: int) -> bool:
        return self._pressed[key & 0xF]

    def next_release(self) -> Optional[int]:
        """Pop the oldest pending release event, or None."""
        if self._releases:
            return self._releases.popleft()
        return None


class Beeper:
    """Tracks whether a tone should be sounding, driven by the sound timer.

    A real host subclasses this (or supplies its own AudioSink) to start and
    stop an actual tone in on_start/on_stop.
    """

    def __init__(self):
        self.active = False
        self.tone_starts = 0

    def update(self, sound_timer: int) -> None:
        if sound_timer > 0 and not self.active:
            self.active = True
            self.tone_starts += 1
            self.on_start()
        elif sound_timer == 0 and self.active:
            self.active = False
            self.on_stop()

    def on_start(self) -> None:
        pass

    def on_stop(self) -> None:
        pass


class IOBus:
    """Bundle of host collaborators handed to instruction executors."""

    def __init__(
        self,
        display: Optional[DisplaySink] = None,
        keypad: Optional[KeypadSource] = None,
        audio: Optional[AudioSink] = None,
        rng: Optional[ByteSource] = None,
    ):
        self.display = display if display is not None else FrameBuffer()
        self.keypad = keypad if keypad is not None else Keypad()
        self.audio = audio if audio is not None else Beeper()
        self.rng = rng if rng is not None else RandomSource()
