"""Built-in formatters.

All formatters return None for a None value and return the value unchanged
when it cannot be interpreted (for example ``{{Name:number}}`` on text).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from celltemplate.expressions.native import format_date
from celltemplate.expressions.values import to_datetime, to_decimal

__all__ = [
    "upper",
    "lower",
    "titlecase",
    "mask",
    "phone",
    "truncate",
    "currency",
    "number",
    "percent",
    "date",
    "BUILTIN_FORMATTERS",
]

DEFAULT_PHONE_MASK = "(###) ###-####"

# code -> (symbol, symbol placed after the amount, decimals, thousands, decimal point)
_CURRENCIES: dict[str, tuple[str, bool, int, str, str]] = {
    "USD": ("$", False, 2, ",", "."),
    "CAD": ("$", False, 2, ",", "."),
    "AUD": ("$", False, 2, ",", "."),
    "GBP": ("£", False, 2, ",", "."),
    "EUR": ("€", True, 2, " ", ","),
    "JPY": ("¥", False, 0, ",", "."),
    "KRW": ("₩", False, 0, ",", "."),
}


def _int_parameter(parameters: list[str], index: int, default: int) -> int:
    if len(parameters) <= index:
        return default
    try:
        return int(parameters[index].strip())
    except ValueError:
        return default


def _grouped(amount: Decimal, decimals: int, thousands: str = ",", point: str = ".") -> str:
    rounded = amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    text = f"{abs(rounded):,.{decimals}f}"
    if (thousands, point) != (",", "."):
        text = text.replace(",", "\0").replace(".", point).replace("\0", thousands)
    return text


def upper(value: Any, parameters: list[str]) -> Any:
    return None if value is None else str(value).upper()


def lower(value: Any, parameters: list[str]) -> Any:
    return None if value is None else str(value).lower()


def titlecase(value: Any, parameters: list[str]) -> Any:
    """Capitalize each word: ``"jOHN smith"`` -> ``"John Smith"``."""
    if value is None:
        return None
    return " ".join(word.capitalize() for word in str(value).lower().split(" "))


def mask(value: Any, parameters: list[str]) -> Any:
    """Lay the characters of ``value`` over a mask; ``#`` takes the next one.

    ``{{Code:mask("###-##")}}`` on ``"12345"`` gives ``"123-45"``.
    """
    if value is None or not parameters:
        return value
    characters = iter(str(value))
    result = []
    for symbol in parameters[0]:
        if symbol == "#":
            result.append(next(characters, ""))
        else:
            result.append(symbol)
    return "".join(result)


def phone(value: Any, parameters: list[str]) -> Any:
    """Format a phone number; the mask defaults to ``(###) ###-####``."""
    if value is None:
        return None
    digits = "".join(c for c in str(value) if c not in " -()")
    pattern = parameters[0] if parameters else DEFAULT_PHONE_MASK
    return mask(digits, [pattern])


def truncate(value: Any, parameters: list[str]) -> Any:
    """Cut text to ``length`` characters and append ``suffix`` (default ``...``)."""
    if value is None:
        return None
    text = str(value)
    length = _int_parameter(parameters, 0, -1)
    if length < 0 or len(text) <= length:
        return text
    suffix = parameters[1] if len(parameters) > 1 else "..."
    return text[:length] + suffix


def currency(value: Any, parameters: list[str]) -> Any:
    """Format an amount in a currency (code defaults to USD).

    Unknown codes are written as ``1,234.50 CHF``.
    """
    if value is None:
        return None
    amount = to_decimal(value)
    if amount is None:
        return value

    code = parameters[0].strip().upper() if parameters else "USD"
    if code not in _CURRENCIES:
        text = _grouped(amount, 2)
        return f"-{text} {code}" if amount < 0 else f"{text} {code}"

    symbol, trailing, decimals, thousands, point = _CURRENCIES[code]
    text = _grouped(amount, decimals, thousands, point)
    formatted = f"{text} {symbol}" if trailing else f"{symbol}{text}"
    return f"-{formatted}" if amount < 0 else formatted


def number(value: Any, parameters: list[str]) -> Any:
    """Thousands-separated number with ``decimals`` places (default 0)."""
    if value is None:
        return None
    amount = to_decimal(value)
    if amount is None:
        return value
    text = _grouped(amount, max(_int_parameter(parameters, 0, 0), 0))
    return f"-{text}" if amount < 0 and text.strip("0.,") else text


def percent(value: Any, parameters: list[str]) -> Any:
    """Ratio as a percentage: ``0.256`` -> ``"26%"`` (``decimals`` default 0)."""
    if value is None:
        return None
    ratio = to_decimal(value)
    if ratio is None:
        return value
    text = _grouped(ratio * 100, max(_int_parameter(parameters, 0, 0), 0))
    return f"-{text}%" if ratio < 0 and text.strip("0.,") else f"{text}%"


def date(value: Any, parameters: list[str]) -> Any:
    """Format a date; the pattern defaults to the short date ``d``.

    Patterns use ``yyyy MM dd HH mm ss`` tokens or ``strftime`` directives.
    ISO date strings are accepted as values.
    """
    if value is None:
        return None
    moment = to_datetime(value)
    if moment is None:
        return value
    pattern = parameters[0] if parameters else "d"
    return format_date(moment, pattern)


BUILTIN_FORMATTERS = {
    "upper": upper,
    "lower": lower,
    "titlecase": titlecase,
    "mask": mask,
    "phone": phone,
    "truncate": truncate,
    "currency": currency,
    "number": number,
    "percent": percent,
    "date": date,
}
