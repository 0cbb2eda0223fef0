"""Unit tests for bind length resolution."""

from typing import Any

import pytest

from procbind.core.length_resolver import AUTO_LENGTH, LengthResolver
from procbind.core.types import ArrayLength
from procbind.exceptions import InvalidLengthError


@pytest.fixture
def resolver() -> LengthResolver:
    return LengthResolver()


def test_empty_array_length(resolver: LengthResolver) -> None:
    """Test empty arrays bind with both dimensions set to 1."""
    assert resolver.resolve_length([], is_array=True) == ArrayLength(max_table_length=1, max_item_length=1)


def test_array_length_default(resolver: LengthResolver) -> None:
    """Test non-empty arrays use their element count and let the driver size items."""
    assert resolver.resolve_length([1, 2, 3], is_array=True) == ArrayLength(3, -1)


def test_mapping_array_length(resolver: LengthResolver) -> None:
    """Test mapping arrays count their entries."""
    assert resolver.resolve_length({"a": 1, "b": 2}, is_array=True) == ArrayLength(2, -1)


def test_raw_scalar_length(resolver: LengthResolver) -> None:
    """Test raw scalars leave the length to the driver."""
    assert resolver.resolve_length("http://x", is_array=False) == AUTO_LENGTH


@pytest.mark.parametrize(
    ("length", "expected"),
    [(8, 8), ("2000", 2000), (" 16 ", 16), (12.0, 12), (None, -1), ("", -1)],
)
def test_compound_scalar_length(resolver: LengthResolver, length: Any, expected: int) -> None:
    """Test explicit compound lengths are coerced to int."""
    descriptor = {"length": length, "type": "chr", "value": None}
    assert resolver.resolve_length(descriptor, is_array=False, is_compound=True) == expected


@pytest.mark.parametrize("length", ["abc", "12px", True, [8]])
def test_compound_scalar_invalid_length(resolver: LengthResolver, length: Any) -> None:
    """Test non-numeric explicit lengths are rejected."""
    descriptor = {"length": length, "type": "chr", "value": None}
    with pytest.raises(InvalidLengthError):
        resolver.resolve_length(descriptor, is_array=False, is_compound=True)


def test_compound_array_without_length(resolver: LengthResolver) -> None:
    """Test compound arrays without a length fall back to the raw array rule."""
    descriptor = {"length": None, "type": "int", "value": ["1", "2"]}
    assert resolver.resolve_length(descriptor, is_array=True, is_compound=True) == ArrayLength(2, -1)


def test_compound_empty_array_without_length(resolver: LengthResolver) -> None:
    """Test compound empty arrays without a length use the 1/1 rule."""
    descriptor = {"length": None, "type": "int", "value": []}
    assert resolver.resolve_length(descriptor, is_array=True, is_compound=True) == ArrayLength(1, 1)


def test_compound_array_with_length(resolver: LengthResolver) -> None:
    """Test an explicit compound length becomes the per-item buffer size."""
    descriptor = {"length": 50, "type": "chr", "value": ["a", "b", "c"]}
    assert resolver.resolve_length(descriptor, is_array=True, is_compound=True) == ArrayLength(3, 50)


def test_compound_detected_without_flag(resolver: LengthResolver) -> None:
    """Test compound descriptors are recognized even without the flag."""
    descriptor = {"length": 10, "type": "chr", "value": "abc"}
    assert resolver.resolve_length(descriptor, is_array=False) == 10
