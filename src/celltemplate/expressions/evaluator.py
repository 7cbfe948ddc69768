"""Expression evaluation and handler dispatch.

The evaluator turns a :class:`ParsedExpression` into a value:

- standard: the resolved variable, or the original ``{{...}}`` text when it
  cannot be resolved
- format: the registered formatter's result; without one, the operation is
  tried as a native number/date pattern; failing that the raw value
- function: the registered function is invoked on the cell and the cell's
  resulting value is read back; an unknown name yields
  ``Unknown function '<name>'`` and leaves the cell alone

A formatter or function that raises never aborts the run. The failure is
recorded as a :class:`TemplateError` for the cell, the cell is coloured with
the error font colour and ``Error: <message>`` takes the place of the value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from celltemplate.constants import DEFAULT_ERROR_FONT_COLOR
from celltemplate.document.protocols import CellHandle
from celltemplate.expressions.errors import MalformedExpressionError
from celltemplate.expressions.native import format_native
from celltemplate.expressions.parser import (
    ExpressionKind,
    ParsedExpression,
    extract_expressions,
    parse_expression,
)
from celltemplate.expressions.resolver import VariableResolver
from celltemplate.expressions.values import MISSING, display_text
from celltemplate.logging import get_logger
from celltemplate.registry import TemplateRegistry
from celltemplate.results import TemplateError, TemplateErrors

__all__ = [
    "Evaluation",
    "ExpressionEvaluator",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Outcome of evaluating one expression.

    Attributes:
        value: Value to substitute (the original text when unresolved).
        resolved: False when the variable could not be resolved and the
            placeholder was preserved.
        failed: True when a formatter or function raised.
    """

    value: Any
    resolved: bool = True
    failed: bool = False


class ExpressionEvaluator:
    """Evaluate parsed expressions against a resolver and a registry.

    Attributes:
        resolver: Variable resolver bound to the template's bindings.
        registry: Formatter and function registries.
        errors: Sink for handler failures.
        error_font_color: Font colour applied to cells whose handler failed.

    Example:
        ```python
        evaluator = ExpressionEvaluator(
            VariableResolver(VariableBindings({"Name": "john"})),
            registry,
        )
        evaluator.evaluate(parse_expression("{{Name:upper}}"))  # 'JOHN'
        ```
    """

    def __init__(
        self,
        resolver: VariableResolver,
        registry: TemplateRegistry,
        errors: TemplateErrors | None = None,
        *,
        error_font_color: str = DEFAULT_ERROR_FONT_COLOR,
    ) -> None:
        self.resolver = resolver
        self.registry = registry
        self.errors = errors if errors is not None else TemplateErrors()
        self.error_font_color = error_font_color

    def evaluate(
        self,
        expression: ParsedExpression,
        cell: CellHandle | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> Any:
        """Evaluate ``expression`` and return the value to substitute.

        Args:
            expression: Parsed expression.
            cell: Target cell; required for function expressions to have
                an effect.
            scope: Per-iteration bindings layered over the binding table.

        Returns:
            The evaluated value. Never raises for unresolved variables,
            unknown handlers or handler failures.
        """
        return self.evaluate_detailed(expression, cell, scope).value

    def evaluate_detailed(
        self,
        expression: ParsedExpression,
        cell: CellHandle | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> Evaluation:
        """Like :meth:`evaluate` but reports whether the variable resolved."""
        value = self.resolver.resolve(expression.variable_text, scope)
        if value is MISSING:
            return Evaluation(expression.original_text, resolved=False)

        if expression.kind is ExpressionKind.FORMAT:
            return self._apply_formatter(expression, value, cell)
        if expression.kind is ExpressionKind.FUNCTION:
            return self._apply_function(expression, value, cell)
        return Evaluation(value)

    def render(
        self,
        text: str,
        cell: CellHandle | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> Any:
        """Evaluate every expression in ``text``, left to right.

        Text that is exactly one expression yields the typed value; otherwise
        each expression is replaced by its text form. Malformed expressions
        are left as they are.
        """
        expressions = extract_expressions(text)
        if not expressions:
            return text

        if len(expressions) == 1 and text.strip() == expressions[0]:
            parsed = self._parse(expressions[0], cell)
            if parsed is None:
                return text
            return self.evaluate(parsed, cell, scope)

        rendered = text
        for raw in expressions:
            parsed = self._parse(raw, cell)
            if parsed is None:
                continue
            value = self.evaluate(parsed, cell, scope)
            rendered = rendered.replace(raw, display_text(value), 1)
        return rendered

    def mark_error(self, cell: CellHandle) -> None:
        """Flag ``cell`` visibly as failed."""
        cell.set_style(font_color=self.error_font_color)

    def record_error(
        self,
        message: str,
        cell: CellHandle | None = None,
        expression: str | None = None,
    ) -> TemplateError:
        """Record a :class:`TemplateError`, tied to ``cell`` when given."""
        error = TemplateError(
            message=message,
            sheet=cell.sheet_name if cell is not None else None,
            address=cell.address if cell is not None else None,
            expression=expression,
        )
        self.errors.add(error)
        return error

    def _parse(self, raw: str, cell: CellHandle | None) -> ParsedExpression | None:
        try:
            return parse_expression(raw)
        except MalformedExpressionError as e:
            logger.warning(
                "malformed_expression",
                expression=raw,
                cell=f"{cell.sheet_name}!{cell.address}" if cell is not None else None,
                error=e.message,
            )
            return None

    def _apply_formatter(
        self,
        expression: ParsedExpression,
        value: Any,
        cell: CellHandle | None,
    ) -> Evaluation:
        name = expression.operation or ""
        formatter = self.registry.formatters.resolve(name)
        if formatter is not None:
            try:
                return Evaluation(formatter(value, list(expression.parameters)))
            except Exception as e:
                return self._handler_failed("Formatter", expression, cell, e)

        native = format_native(value, name)
        if native is not MISSING:
            return Evaluation(native)

        logger.debug("formatter_not_found", formatter=name)
        return Evaluation(value)

    def _apply_function(
        self,
        expression: ParsedExpression,
        value: Any,
        cell: CellHandle | None,
    ) -> Evaluation:
        name = expression.operation or ""
        function = self.registry.functions.resolve(name)
        if function is None:
            logger.debug("function_not_found", function=name)
            return Evaluation(f"Unknown function '{name}'")

        if cell is None:
            logger.warning("function_without_cell", function=name)
            return Evaluation(value)

        try:
            function(cell, value, list(expression.parameters))
        except Exception as e:
            return self._handler_failed("Function", expression, cell, e)
        return Evaluation(cell.value)

    def _handler_failed(
        self,
        handler_kind: str,
        expression: ParsedExpression,
        cell: CellHandle | None,
        error: Exception,
    ) -> Evaluation:
        logger.warning(
            "handler_failed",
            kind=handler_kind.lower(),
            operation=expression.operation,
            expression=expression.original_text,
            cell=f"{cell.sheet_name}!{cell.address}" if cell is not None else None,
            error=str(error),
        )
        self.record_error(
            f"{handler_kind} '{expression.operation}' failed: {error}",
            cell,
            expression.original_text,
        )
        if cell is not None:
            self.mark_error(cell)
        return Evaluation(f"Error: {error}", failed=True)
