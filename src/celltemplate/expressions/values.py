"""Sentinel and coercion helpers shared by the resolver and formatters."""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Final

from celltemplate.constants import DIVISION_BY_ZERO_CODE

__all__ = [
    "MISSING",
    "ErrorValue",
    "DIVISION_BY_ZERO",
    "to_decimal",
    "to_datetime",
    "normalize_number",
    "display_text",
]


class _Missing:
    """Marker for a variable that could not be resolved.

    Distinct from ``None``: a variable bound to ``None`` is resolved.
    """

    __slots__ = ()
    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


@dataclass(frozen=True, slots=True)
class ErrorValue:
    """Spreadsheet-style error value such as ``#DIV/0!``.

    Returned instead of raising so a bad row never aborts a batch.
    """

    code: str

    def __str__(self) -> str:
        return self.code


DIVISION_BY_ZERO: Final = ErrorValue(DIVISION_BY_ZERO_CODE)


def to_decimal(value: Any) -> Decimal | None:
    """Interpret ``value`` as a decimal number, or return None.

    Booleans are not numbers here. Strings are parsed after trimming.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def to_datetime(value: Any) -> dt.datetime | dt.date | None:
    """Interpret ``value`` as a date/datetime (ISO strings accepted)."""
    if isinstance(value, (dt.datetime, dt.date)):
        return value
    if isinstance(value, str):
        text = value.strip()
        for parse in (dt.datetime.fromisoformat, dt.date.fromisoformat):
            try:
                return parse(text)
            except ValueError:
                continue
    return None


def normalize_number(number: Decimal) -> int | float:
    """Return an ``int`` for integral decimals and a ``float`` otherwise."""
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def display_text(value: Any) -> str:
    """Text substituted for ``value`` inside a larger string."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, Decimal):
        return str(normalize_number(value))
    return str(value)
