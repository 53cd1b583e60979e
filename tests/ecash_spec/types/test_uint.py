"""Unsigned Integer Type Tests."""

from typing import Any, Type

import pytest
from pydantic import ValidationError, create_model

from ecash_spec.types.uint import BaseUint, Uint32, Uint64

ALL_UINT_TYPES = (Uint32, Uint64)
"""A collection of all Uint types to test against."""


@pytest.mark.parametrize("uint_class", ALL_UINT_TYPES)
def test_pydantic_validation_accepts_valid_int(uint_class: Type[BaseUint]) -> None:
    """Tests that Pydantic validation correctly accepts a valid integer."""
    model = create_model("Model", value=(uint_class, ...))

    instance: Any = model(value=10)
    assert isinstance(instance.value, uint_class)
    assert instance.value == uint_class(10)


@pytest.mark.parametrize("uint_class", ALL_UINT_TYPES)
@pytest.mark.parametrize("invalid_value", [1.0, "1", True, b"1"])
def test_pydantic_rejects_non_int_values(uint_class: Type[BaseUint], invalid_value: Any) -> None:
    """Values that merely convert to an int are refused."""
    model = create_model("Model", value=(uint_class, ...))

    with pytest.raises(ValidationError):
        model(value=invalid_value)


@pytest.mark.parametrize("uint_class", ALL_UINT_TYPES)
def test_range_is_enforced(uint_class: Type[BaseUint]) -> None:
    """Construction outside [0, 2**BITS) raises OverflowError."""
    assert uint_class(0) == 0
    assert uint_class.max_value() == 2**uint_class.BITS - 1

    with pytest.raises(OverflowError):
        uint_class(-1)
    with pytest.raises(OverflowError):
        uint_class(2**uint_class.BITS)


def test_bool_is_rejected() -> None:
    """Booleans are ints in Python but never valid header fields."""
    with pytest.raises(TypeError):
        Uint32(True)


def test_arithmetic_decays_to_int() -> None:
    """Differences may be negative, so arithmetic leaves the Uint type."""
    diff = Uint32(5) - Uint32(10)
    assert diff == -5
    assert type(diff) is int


def test_to_bytes_is_little_endian_fixed_width() -> None:
    """Default encoding matches the header wire layout."""
    assert Uint32(1).to_bytes() == b"\x01\x00\x00\x00"
    assert Uint64(0x0102).to_bytes() == b"\x02\x01" + b"\x00" * 6


def test_json_round_trip() -> None:
    """JSON mode serializes to a plain integer and validates it back."""
    model = create_model("Model", value=(Uint64, ...))
    instance: Any = model(value=Uint64(42))

    dumped = instance.model_dump_json()
    assert dumped == '{"value":42}'
    assert model.model_validate_json(dumped).value == Uint64(42)
