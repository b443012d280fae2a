"""Randomness sources for the RND instruction."""

import random
from typing import Optional, Protocol, Sequence


class ByteSource(Protocol):
    def next_byte(self) -> int:
        ...


class RandomSource:
    """Uniform random bytes from a (optionally seeded) random.Random."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_byte(self) -> int:
        return self._random.randrange(256)


class SequenceRandomSource:
    """Replays a fixed cycle of bytes. Used to make RND deterministic in tests."""

    def __init__(self, values: Sequence[int]):
        if not values:
            raise ValueError("SequenceRandomSource needs at least one value")
        self._values = [v & 0xFF for v in values]
        self._pos = 0

    def next_byte(self) -> int:
        value = self._values[self._pos]
        self._pos = (self._pos + 1) % len(self._values)
        return value
