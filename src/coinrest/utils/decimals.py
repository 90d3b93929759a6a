"""Exact decimal conversion for monetary values.

Prices and sizes are built from the textual form of the upstream number.
JSON bodies are decoded with ``parse_float=Decimal`` (see `loads_exact`),
so a bare JSON number like ``1234567.12345678`` never passes through a
binary float on its way to a `Decimal`.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any


def loads_exact(text: str) -> Any:
    """Decodes JSON, turning every non-integer number into a `Decimal`."""
    return json.loads(text, parse_float=Decimal)


def to_decimal(value: Any) -> Decimal:
    """Converts an upstream numeric value to a finite `Decimal`.

    Accepts `Decimal`, `int` and numeric strings. Floats are converted via
    their shortest ``repr`` so the result matches the digits the sender
    wrote, never the binary expansion.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        err_msg = f"Boolean is not a number: {value!r}"
        raise ValueError(err_msg)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int | float | str):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            err_msg = f"Not a decimal number: {value!r}"
            raise ValueError(err_msg) from e
    else:
        err_msg = f"Unsupported numeric type: {type(value).__name__}"
        raise ValueError(err_msg)

    if not result.is_finite():
        err_msg = f"Non-finite number: {value!r}"
        raise ValueError(err_msg)
    return result


def format_decimal(value: Decimal | int | str) -> str:
    """Renders a caller-supplied rate/amount for a request body.

    Uses fixed-point notation (no exponent) and keeps every digit the caller
    gave. Floats are refused: the caller must decide on the exact value.

    Raises:
        TypeError: If ``value`` is a float or another unsupported type.
        ValueError: If ``value`` is not a finite, non-negative number.
    """
    if isinstance(value, float):
        err_msg = "Floats are not accepted for rates or amounts; pass a Decimal or str."
        raise TypeError(err_msg)
    if isinstance(value, bool) or not isinstance(value, Decimal | int | str):
        err_msg = f"Unsupported numeric type: {type(value).__name__}"
        raise TypeError(err_msg)
    number = to_decimal(value)
    if number < 0:
        err_msg = f"Rates and amounts must not be negative: {value!r}"
        raise ValueError(err_msg)
    return format(number, "f")
