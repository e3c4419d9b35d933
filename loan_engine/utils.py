"""Utility functions for the loan engine.

This module provides helpers for turning user input (CLI strings, JSON values,
plain numbers) into ``Decimal`` values. Every numeric field handled by the
engine goes through :func:`to_decimal` so that calculations never mix floats
and decimals.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, getcontext
from typing import Any

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Coerce ``value`` into a finite ``Decimal``.

    Floats are converted through their string representation so that ``0.1``
    becomes ``Decimal("0.1")`` rather than its binary expansion. Booleans,
    ``None``, NaN and infinities are rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"{name} must be a number; got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(int(value))
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = decimal_from_str(value)
        except ValueError as exc:
            raise ValueError(f"{name} must be a number; got {value!r}") from exc
    else:
        raise ValueError(f"{name} must be a number; got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{name} must be a finite number; got {value!r}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    return decimal_from_str(value) * factor


def parse_percent(value: str) -> Decimal:
    """Parse a percentage string (e.g. "10" or "10%") into a decimal fraction."""
    value = value.strip()
    if value.endswith("%"):
        value = value[:-1]
    return decimal_from_str(value) / Decimal(100)
