"""Additive 8-bit checksum used by SR900 frames."""

from __future__ import annotations


def sum8(data: bytes) -> int:
    """Return the sum of ``data`` taken as unsigned bytes, modulo 256."""
    total = 0
    for byte in data:
        total += byte
    return total & 0xFF
