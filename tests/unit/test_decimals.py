from decimal import Decimal

import pytest

from coinrest.utils.decimals import format_decimal, loads_exact, to_decimal


def test_loads_exact_keeps_every_digit() -> None:
    payload = loads_exact('{"price": 1234567.12345678, "size": 0.1, "n": 3}')
    assert payload["price"] == Decimal("1234567.12345678")
    assert str(payload["price"]) == "1234567.12345678"
    assert payload["size"] == Decimal("0.1")
    assert payload["n"] == 3


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1234567.12345678", Decimal("1234567.12345678")),
        (" 42 ", Decimal("42")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        (Decimal("1E-8"), Decimal("0.00000001")),
    ],
)
def test_to_decimal(value, expected) -> None:
    assert to_decimal(value) == expected


@pytest.mark.parametrize("value", [True, "abc", "NaN", "Infinity", None, [1]])
def test_to_decimal_rejects(value) -> None:
    with pytest.raises(ValueError):
        to_decimal(value)


def test_format_decimal_is_fixed_point() -> None:
    assert format_decimal(Decimal("1E+2")) == "100"
    assert format_decimal(Decimal("0.00000001")) == "0.00000001"
    assert format_decimal("3000000") == "3000000"
    assert format_decimal(5) == "5"


def test_format_decimal_refuses_floats_and_negatives() -> None:
    with pytest.raises(TypeError, match="Floats are not accepted"):
        format_decimal(0.1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        format_decimal(True)  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="must not be negative"):
        format_decimal("-1")
