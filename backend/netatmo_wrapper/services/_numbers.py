"""Parsing helpers for numeric admin and command parameters."""

import math
from typing import Any


def parse_number(value: Any) -> int | float | None:
    """Parse a numeric parameter, returning None when it is missing or not a finite number.

    Integral values come back as int so they format without a trailing ".0".
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def parse_positive(value: Any) -> int | float | None:
    """Like parse_number, but also rejects zero and negative values."""
    number = parse_number(value)
    if number is None or number <= 0:
        return None
    return number
