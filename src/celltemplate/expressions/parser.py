"""Expression parser.

Cell text may embed any number of expressions in ``{{ ... }}`` delimiters:

- ``{{Name}}`` - standard reference, resolved and substituted
- ``{{Order.Lines[0].Price}}`` - nested member/index path
- ``{{item.Price * item.Qty}}`` - single-operator arithmetic
- ``{{Items.Count}}`` - collection size, rewritten to ``{{Items_Count}}``
- ``{{Name:upper}}`` - format expression (pure formatter)
- ``{{Amount:number(2)}}`` - format expression with parameters
- ``{{Title|bold}}`` - function expression (cell-mutating handler)
- ``{{Url|link("Click (here), now")}}`` - quoted parameter with commas

Splitting the body into variable and operation is done by a hand-written
scanner (delimiters are only honoured outside brackets and quotes); the
operation text ``name(params)`` is parsed with a Lark LALR grammar
(operation.lark).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

from celltemplate.constants import (
    COUNT_MEMBER,
    COUNT_SUFFIX,
    EXPRESSION_CLOSE,
    EXPRESSION_OPEN,
    FORMAT_DELIMITER,
    FUNCTION_DELIMITER,
)
from celltemplate.expressions.errors import MalformedExpressionError

__all__ = [
    "ExpressionKind",
    "ParsedExpression",
    "extract_expressions",
    "parse_expression",
    "parse_operation",
    "is_enhanced_expression",
]


class ExpressionKind(str, Enum):
    """Shape of a cell expression."""

    STANDARD = "standard"  # {{variable}}
    FORMAT = "format"  # {{variable:formatter(params)}}
    FUNCTION = "function"  # {{variable|function(params)}}


@dataclass(frozen=True, slots=True)
class ParsedExpression:
    """One parsed ``{{...}}`` occurrence.

    Attributes:
        kind: Standard, format or function.
        variable_text: Text identifying the value (name, path or arithmetic).
        operation: Formatter or function name; None for standard expressions.
        parameters: Ordered parameter strings.
        original_text: Exact matched substring, delimiters included.

    Examples:
        >>> expr = parse_expression("{{Amount:number(2)}}")
        >>> expr.kind, expr.operation, expr.parameters
        (<ExpressionKind.FORMAT: 'format'>, 'number', ('2',))
    """

    kind: ExpressionKind
    variable_text: str
    operation: str | None
    parameters: tuple[str, ...]
    original_text: str

    def __post_init__(self) -> None:
        if self.kind is ExpressionKind.STANDARD:
            if self.operation is not None:
                raise ValueError("Standard expressions have no operation")
        elif not self.operation:
            raise ValueError(f"{self.kind.value} expressions need an operation")

    @property
    def is_enhanced(self) -> bool:
        """True for format and function expressions."""
        return self.kind is not ExpressionKind.STANDARD


# =============================================================================
# Extraction
# =============================================================================


def _find_close(text: str, start: int) -> int:
    """Return the index just past the ``}}`` balancing the ``{{`` at start."""
    depth = 0
    i = start
    while i < len(text) - 1:
        pair = text[i : i + 2]
        if pair == EXPRESSION_OPEN:
            depth += 1
            i += 2
        elif pair == EXPRESSION_CLOSE:
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return -1


def extract_expressions(text: str | None) -> list[str]:
    """Return every outermost balanced ``{{...}}`` substring, left to right.

    Nested delimiters are kept inside their enclosing match. An unbalanced
    ``{{`` ends the scan.

    Args:
        text: Raw cell text. None or empty yields an empty list.

    Returns:
        List of matched substrings including their delimiters.

    Examples:
        >>> extract_expressions("Dear {{Name}}, you owe {{Amount:currency}}")
        ['{{Name}}', '{{Amount:currency}}']
    """
    if not text:
        return []

    found: list[str] = []
    position = 0
    while True:
        start = text.find(EXPRESSION_OPEN, position)
        if start < 0:
            break
        end = _find_close(text, start)
        if end < 0:
            break
        found.append(text[start:end])
        position = end
    return found


def is_enhanced_expression(text: str | None) -> bool:
    """Cheap test for text that may hold a format or function expression."""
    if not text or EXPRESSION_OPEN not in text:
        return False
    return FORMAT_DELIMITER in text or FUNCTION_DELIMITER in text


# =============================================================================
# Operation text grammar
# =============================================================================

_GRAMMAR = (Path(__file__).parent / "operation.lark").read_text()

_operation_parser = Lark(_GRAMMAR, parser="lalr", start="start")


class _OperationTransformer(Transformer[Token, object]):
    """Transform an operation parse tree into (name, parameters)."""

    def start(self, items: list[object]) -> tuple[str, tuple[str, ...]]:
        name = str(items[0])
        parameters = items[1] if len(items) > 1 else ()
        return name, parameters  # type: ignore[return-value]

    def arguments(self, items: list[object]) -> tuple[str, ...]:
        # LPAR, COMMA and RPAR stay Tokens; arguments are already plain str
        values = [item for item in items if not isinstance(item, Token)]
        if values == [""]:
            return ()
        return tuple(str(value) for value in values)

    def argument(self, items: list[object]) -> str:
        meaningful = [
            item
            for item in items
            if not (isinstance(item, Token) and item.type == "TEXT" and not item.strip())
        ]
        if (
            len(meaningful) == 1
            and isinstance(meaningful[0], Token)
            and meaningful[0].type == "QUOTED"
        ):
            return _unquote(str(meaningful[0]))
        return "".join(str(item) for item in items).strip()

    def group(self, items: list[object]) -> str:
        return "".join(str(item) for item in items)


def _unquote(token: str) -> str:
    quote = token[0]
    return token[1:-1].replace("\\" + quote, quote).replace("\\\\", "\\")


@lru_cache(maxsize=512)
def parse_operation(op_text: str) -> tuple[str, tuple[str, ...]]:
    """Split an operation text into name and parameters.

    Text that is not ``name`` or ``name(params)`` (for instance the native
    pattern ``yyyy-MM-dd`` or ``#,##0.00``) is returned whole as the name
    with no parameters.

    Examples:
        >>> parse_operation("truncate(5, '...')")
        ('truncate', ('5', '...'))
        >>> parse_operation("dd/MM/yyyy")
        ('dd/MM/yyyy', ())
    """
    op_text = op_text.strip()
    try:
        tree = _operation_parser.parse(op_text)
    except LarkError:
        return op_text, ()
    result: tuple[str, tuple[str, ...]] = _OperationTransformer().transform(tree)
    return result


# =============================================================================
# Expression parsing
# =============================================================================

_OPENERS = {"(": ")", "[": "]"}
_COUNT_PATTERN = re.compile(rf"([^\s.\[\]]+)\.{COUNT_MEMBER}")


def _find_delimiter(content: str, delimiter: str) -> int:
    """Index of the first ``delimiter`` outside brackets/quotes, or -1.

    A backslash escapes the following character.
    """
    closers: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(content):
        char = content[i]
        if char == "\\":
            i += 2
            continue
        if quote is not None:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char in _OPENERS:
            closers.append(_OPENERS[char])
        elif closers and char == closers[-1]:
            closers.pop()
        elif char == delimiter and not closers:
            return i
        i += 1
    return -1


def _unescape(text: str) -> str:
    return (
        text.replace("\\" + FUNCTION_DELIMITER, FUNCTION_DELIMITER)
        .replace("\\" + FORMAT_DELIMITER, FORMAT_DELIMITER)
        .strip()
    )


def parse_expression(expression: str) -> ParsedExpression:
    """Parse a single ``{{...}}`` expression.

    The function shape (``|``) is tested before the format shape (``:``), so
    ``{{Date:yyyy|bold}}`` is a function expression on ``Date:yyyy``.

    Args:
        expression: Exactly one balanced expression, delimiters included.

    Returns:
        The parsed expression.

    Raises:
        MalformedExpressionError: If the text is not a single expression or
            its body cannot be split into a recognised shape.
    """
    if extract_expressions(expression) != [expression]:
        raise MalformedExpressionError(
            "Expected a single {{...}} expression", expression=expression
        )

    inner = expression[len(EXPRESSION_OPEN) : -len(EXPRESSION_CLOSE)]
    content = inner.strip()
    if not content:
        raise MalformedExpressionError("Empty expression", expression=expression)

    offset = len(EXPRESSION_OPEN) + (len(inner) - len(inner.lstrip()))
    for kind, delimiter in (
        (ExpressionKind.FUNCTION, FUNCTION_DELIMITER),
        (ExpressionKind.FORMAT, FORMAT_DELIMITER),
    ):
        index = _find_delimiter(content, delimiter)
        if index < 0:
            continue

        variable_text = _unescape(content[:index])
        op_text = content[index + 1 :].strip()
        if not variable_text:
            raise MalformedExpressionError(
                f"Missing variable before '{delimiter}'",
                expression=expression,
                position=offset + index,
            )
        if not op_text:
            raise MalformedExpressionError(
                f"Missing operation after '{delimiter}'",
                expression=expression,
                position=offset + index,
            )

        operation, parameters = parse_operation(op_text)
        return ParsedExpression(
            kind=kind,
            variable_text=variable_text,
            operation=operation,
            parameters=parameters,
            original_text=expression,
        )

    variable_text = _unescape(content)
    count_match = _COUNT_PATTERN.fullmatch(variable_text)
    if count_match:
        variable_text = f"{count_match.group(1)}{COUNT_SUFFIX}"

    return ParsedExpression(
        kind=ExpressionKind.STANDARD,
        variable_text=variable_text,
        operation=None,
        parameters=(),
        original_text=expression,
    )
