"""Shared test helpers."""

from __future__ import annotations

from typing import Iterable


class FixedRandomSource:
    """Replays a fixed sequence of bytes, cycling when exhausted.

    A single value gives a constant source, which is handy for checking
    whole frames byte for byte.
    """

    def __init__(self, values: int | Iterable[int]) -> None:
        if isinstance(values, int):
            values = [values]
        self._values = list(values)
        if not self._values:
            raise ValueError("FixedRandomSource needs at least one value")
        for value in self._values:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Random values must be 0-255, got {value}")
        self._index = 0

    def next_byte_in_range(self, low: int, high: int) -> int:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        if not low <= value <= high:
            raise ValueError(f"Fixed value {value} outside [{low}, {high}]")
        return value
