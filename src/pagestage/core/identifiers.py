"""Identifier generation for class names and preview ids."""

import random
import string
from typing import Protocol

ALPHABET = string.ascii_letters


class IdentifierGenerator(Protocol):
    """Source of short random tokens."""

    def next(self) -> str: ...


class RandomIdentifierGenerator:
    """Random letter tokens drawn from a private generator.

    Each instance owns its ``random.Random`` so concurrent renders never
    share generator state.
    """

    def __init__(self, length: int = 6, rng: random.Random | None = None) -> None:
        if length < 1:
            raise ValueError("length must be positive")
        self._length = length
        self._rng = rng or random.Random()

    def next(self) -> str:
        return "".join(self._rng.choice(ALPHABET) for _ in range(self._length))
