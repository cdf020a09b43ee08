"""Random byte sources for header rotation and payload padding."""

from __future__ import annotations

import random
from typing import Protocol


class RandomSource(Protocol):
    def next_byte_in_range(self, low: int, high: int) -> int:
        """Return a byte uniformly drawn from ``[low, high]`` inclusive."""
        ...


class SystemRandomSource:
    """Draws from :mod:`random`. Reseedable for reproducible captures."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def next_byte_in_range(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)

