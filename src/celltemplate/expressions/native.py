"""Native pattern formatting.

Used when a format expression names no registered formatter: the operation
text is then tried as a pattern understood by the value itself.

- numbers: Python format specs (``,.2f``, ``.1%``) and the .NET-style standard
  specifiers ``N2`` ``F1`` ``P0`` ``C2`` ``D5`` ``E3`` ``X``
- dates: .NET-style custom patterns (``yyyy-MM-dd``, ``dd/MM/yyyy HH:mm``) and
  raw ``strftime`` patterns (``%d %B %Y``)
"""

from __future__ import annotations

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from celltemplate.expressions.values import MISSING, to_decimal

__all__ = [
    "format_native",
    "format_number",
    "format_date",
    "dotnet_to_strftime",
]

_STANDARD_NUMERIC = re.compile(r"([NnFfPpCcDdEeXx])(\d{0,2})")
_CUSTOM_NUMERIC = re.compile(r"([#0,]*)(?:\.([0#]+))?(%?)")

# Longest tokens first so "yyyy" wins over "yy"
_DATE_TOKENS: tuple[tuple[str, str], ...] = (
    ("yyyy", "%Y"),
    ("yy", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("M", "%-m"),
    ("dddd", "%A"),
    ("ddd", "%a"),
    ("dd", "%d"),
    ("d", "%-d"),
    ("HH", "%H"),
    ("H", "%-H"),
    ("hh", "%I"),
    ("h", "%-I"),
    ("mm", "%M"),
    ("m", "%-M"),
    ("ss", "%S"),
    ("s", "%-S"),
    ("fff", "%f"),
    ("tt", "%p"),
)

_DATE_TOKEN_PATTERN = re.compile(
    "|".join(re.escape(token) for token, _ in _DATE_TOKENS) + r"|'[^']*'|\"[^\"]*\""
)
_DATE_TOKEN_MAP = dict(_DATE_TOKENS)

# Single-letter .NET standard date patterns
_STANDARD_DATE_PATTERNS = {
    "d": "%m/%d/%Y",
    "D": "%A, %B %d, %Y",
    "t": "%H:%M",
    "T": "%H:%M:%S",
    "f": "%A, %B %d, %Y %H:%M",
    "F": "%A, %B %d, %Y %H:%M:%S",
    "g": "%m/%d/%Y %H:%M",
    "G": "%m/%d/%Y %H:%M:%S",
    "s": "%Y-%m-%dT%H:%M:%S",
    "u": "%Y-%m-%d %H:%M:%SZ",
    "o": "%Y-%m-%dT%H:%M:%S.%f",
}


def dotnet_to_strftime(pattern: str) -> str:
    """Convert a .NET custom date pattern into a ``strftime`` pattern.

    Quoted literals are copied verbatim. Patterns that already contain ``%``
    are returned unchanged.

    Examples:
        >>> dotnet_to_strftime("yyyy-MM-dd HH:mm")
        '%Y-%m-%d %H:%M'
    """
    if "%" in pattern:
        return pattern
    if pattern in _STANDARD_DATE_PATTERNS:
        return _STANDARD_DATE_PATTERNS[pattern]

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token[0] in "'\"":
            return token[1:-1]
        return _DATE_TOKEN_MAP[token]

    return _DATE_TOKEN_PATTERN.sub(_replace, pattern)


def _strftime(value: dt.date | dt.time, pattern: str) -> str:
    # "%-d" style flags are glibc only; expand them portably
    def _unpadded(match: re.Match[str]) -> str:
        return str(int(value.strftime("%" + match.group(1))))

    portable = re.sub(r"%-([mdHIMS])", _unpadded, pattern)
    if "%f" in portable and isinstance(value, (dt.datetime, dt.time)):
        portable = portable.replace("%f", f"{value.microsecond // 1000:03d}")
    return value.strftime(portable)


def format_date(value: dt.date | dt.time, pattern: str) -> str:
    """Format a date, datetime or time with a .NET or strftime pattern."""
    return _strftime(value, dotnet_to_strftime(pattern))


def _rounded(value: Decimal, decimals: int) -> Decimal:
    """Round half away from zero, as spreadsheet number formats do."""
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def _standard_numeric(value: Decimal, letter: str, precision: int | None) -> Any:
    upper = letter.upper()
    if upper in "NFPC":
        decimals = 2 if precision is None else precision
        if upper == "P":
            return f"{_rounded(value * 100, decimals):,.{decimals}f}%"
        grouping = "" if upper == "F" else ","
        text = f"{_rounded(value, decimals):{grouping}.{decimals}f}"
        if upper == "C":
            return f"-${text[1:]}" if text.startswith("-") else f"${text}"
        return text
    if upper == "E":
        return f"{value:.{6 if precision is None else precision}{letter}}"

    # D and X only apply to integral values
    if value != value.to_integral_value():
        return MISSING
    integral = int(value)
    if upper == "X":
        if integral < 0:
            return MISSING
        text = format(integral, letter).zfill(precision or 0)
        return text
    text = str(abs(integral)).zfill(precision or 0)
    return f"-{text}" if integral < 0 else text


def _custom_numeric(value: Decimal, match: re.Match[str]) -> str:
    integer_part, fraction, percent = match.groups()
    fraction = fraction or ""
    if percent:
        value *= 100
    grouping = "," if "," in integer_part else ""
    text = f"{_rounded(value, len(fraction)):{grouping}.{len(fraction)}f}"
    # "#" places in the fraction are optional digits
    optional = len(fraction) - len(fraction.rstrip("#"))
    if optional and "." in text:
        whole, _, digits = text.partition(".")
        keep = len(fraction) - optional
        digits = digits[:keep] + digits[keep:].rstrip("0")
        text = f"{whole}.{digits}" if digits else whole
    return text + percent


def format_number(value: Decimal, pattern: str) -> Any:
    """Format a number with a standard specifier, custom pattern or format spec.

    Standard specifiers are ``N`` ``F`` ``P`` ``C`` ``D`` ``E`` ``X`` followed by
    an optional precision. Custom patterns use ``0`` ``#`` ``,`` ``.`` and a
    trailing ``%``. Anything else is passed to ``format()``.

    Returns ``MISSING`` when the pattern is not understood.

    Examples:
        >>> format_number(Decimal("1234.5"), "N2")
        '1,234.50'
        >>> format_number(Decimal("0.256"), "0.#%")
        '25.6%'
    """
    standard = _STANDARD_NUMERIC.fullmatch(pattern)
    if standard:
        digits = standard.group(2)
        return _standard_numeric(
            value, standard.group(1), int(digits) if digits else None
        )

    custom = _CUSTOM_NUMERIC.fullmatch(pattern)
    if custom and (custom.group(1) or custom.group(2)):
        return _custom_numeric(value, custom)

    try:
        return format(value, pattern)
    except (ValueError, TypeError):
        return MISSING


def format_native(value: Any, pattern: str) -> Any:
    """Format ``value`` with ``pattern`` if the value supports patterns.

    Args:
        value: Resolved variable value.
        pattern: Operation text of the format expression.

    Returns:
        The formatted string, or ``MISSING`` if the value has no pattern
        formatting or the pattern is not understood.
    """
    if isinstance(value, (dt.date, dt.time)):
        try:
            return format_date(value, pattern)
        except (ValueError, TypeError):
            return MISSING

    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        number = to_decimal(value)
        if number is None:
            return MISSING
        return format_number(number, pattern)

    return MISSING
