"""Tests for random byte sources."""

import pytest

from conftest import FixedRandomSource

from sr900_mcp.utils.rand import RandomSource, SystemRandomSource


def test_system_source_range():
    """Draws stay inside the requested range."""
    source = SystemRandomSource()
    for _ in range(500):
        assert 1 <= source.next_byte_in_range(1, 255) <= 255


def test_system_source_seeded_is_reproducible():
    a = SystemRandomSource(seed=123)
    b = SystemRandomSource(seed=123)
    assert [a.next_byte_in_range(1, 255) for _ in range(10)] == [
        b.next_byte_in_range(1, 255) for _ in range(10)
    ]


def test_fixed_source_constant():
    source = FixedRandomSource(0x07)
    assert [source.next_byte_in_range(1, 255) for _ in range(3)] == [7, 7, 7]


def test_fixed_source_cycles():
    source = FixedRandomSource([1, 2])
    assert [source.next_byte_in_range(1, 255) for _ in range(5)] == [1, 2, 1, 2, 1]


def test_fixed_source_out_of_range():
    """A fixed zero cannot satisfy a draw from [1, 255]."""
    source = FixedRandomSource(0)
    with pytest.raises(ValueError):
        source.next_byte_in_range(1, 255)


def test_fixed_source_rejects_empty():
    with pytest.raises(ValueError):
        FixedRandomSource([])


def test_sources_satisfy_protocol():
    def draw(source: RandomSource) -> int:
        return source.next_byte_in_range(1, 255)

    assert draw(FixedRandomSource(9)) == 9
    assert 1 <= draw(SystemRandomSource()) <= 255
