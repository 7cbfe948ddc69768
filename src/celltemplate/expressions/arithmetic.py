"""Single-operator arithmetic for calculated columns.

Supports exactly one binary operator surrounded by spaces, for example
``item.Price * item.Qty`` or ``Total - 5``. There is no precedence, no
parenthesization and no chaining: text with more than one occurrence of the
selected operator, or a second operator of another kind, is left unresolved.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any, Literal

from celltemplate.constants import ARITHMETIC_OPERATORS
from celltemplate.expressions.values import (
    DIVISION_BY_ZERO,
    MISSING,
    display_text,
    normalize_number,
    to_decimal,
)

__all__ = [
    "DivisionPolicy",
    "find_operator",
    "evaluate_arithmetic",
]

DivisionPolicy = Literal["error", "zero"]

_NUMBER_LITERAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")


def find_operator(text: str) -> str | None:
    """Return the first arithmetic operator present in ``text``, if any."""
    for operator in ARITHMETIC_OPERATORS:
        if operator in text:
            return operator
    return None


def _operand(text: str, resolve: Callable[[str], Any]) -> Any:
    if _NUMBER_LITERAL.fullmatch(text):
        return Decimal(text)
    if not text:
        return MISSING
    return resolve(text)


def evaluate_arithmetic(
    text: str,
    resolve: Callable[[str], Any],
    *,
    division_by_zero: DivisionPolicy = "error",
) -> Any:
    """Evaluate ``<left> <op> <right>``.

    Each side is a decimal literal or a variable resolved through ``resolve``.
    Numeric results are returned as ``int`` when integral and ``float``
    otherwise. ``+`` concatenates when either side is not numeric.

    Args:
        text: Variable text containing a spaced operator.
        resolve: Callback resolving an operand that is not a literal.
        division_by_zero: "error" returns the ``#DIV/0!`` error value,
            "zero" returns 0.

    Returns:
        The result, or ``MISSING`` if the text is not a supported expression
        or an operand cannot be resolved.
    """
    operator = find_operator(text)
    if operator is None:
        return MISSING

    parts = text.split(operator)
    if len(parts) != 2 or any(find_operator(part) for part in parts):
        return MISSING

    left = _operand(parts[0].strip(), resolve)
    right = _operand(parts[1].strip(), resolve)
    if left is MISSING or right is MISSING:
        return MISSING

    left_number = to_decimal(left)
    right_number = to_decimal(right)

    if left_number is None or right_number is None:
        if operator == " + ":
            return f"{display_text(left)}{display_text(right)}"
        return MISSING

    symbol = operator.strip()
    try:
        if symbol == "*":
            result = left_number * right_number
        elif symbol == "/":
            if right_number == 0:
                return 0 if division_by_zero == "zero" else DIVISION_BY_ZERO
            result = left_number / right_number
        elif symbol == "+":
            result = left_number + right_number
        else:
            result = left_number - right_number
    except (DivisionByZero, InvalidOperation):
        return MISSING
    return normalize_number(result)

