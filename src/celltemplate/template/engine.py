"""Protocol of the external range-expansion engine.

The engine runs between the pre-pass and the post-pass. It owns row/range
expansion and understands only standard ``{{name}}`` expressions: anything it
resolves disappears from the cell, anything else (format and function
expressions in particular) must be left verbatim.

:class:`StandardSubstitutionEngine` is the reference engine. It performs no
expansion; it substitutes resolvable standard expressions in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from celltemplate.document.protocols import CellHandle, Workbook, cell_text
from celltemplate.expressions.arithmetic import DivisionPolicy
from celltemplate.expressions.errors import MalformedExpressionError
from celltemplate.expressions.parser import (
    ExpressionKind,
    extract_expressions,
    parse_expression,
)
from celltemplate.expressions.resolver import (
    GlobalResolver,
    VariableBindings,
    VariableResolver,
)
from celltemplate.expressions.values import MISSING, display_text
from celltemplate.logging import get_logger
from celltemplate.results import SYNTAX_ERROR_PREFIX, TemplateError

__all__ = [
    "ExpansionResult",
    "ExpansionEngine",
    "StandardSubstitutionEngine",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExpansionResult:
    """What the engine reports back after its pass.

    Attributes:
        errors: Errors the engine recorded.
        cell_scopes: Per-iteration binding context of output cells, keyed by
            ``Sheet!A1``; layered over the binding table in the post-pass.
    """

    errors: tuple[TemplateError, ...] = ()
    cell_scopes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


class ExpansionEngine(Protocol):
    """Range-expansion engine run between the pre-pass and the post-pass."""

    def expand(self, workbook: Workbook, bindings: VariableBindings) -> ExpansionResult: ...


class StandardSubstitutionEngine:
    """Substitute resolvable ``{{name}}`` expressions, nothing more.

    A cell that is exactly one expression receives the typed value; mixed text
    receives the text form. Unresolvable and enhanced expressions stay as
    they are. Malformed expressions are reported as syntax errors; a cell whose
    substitution fails is reported and left as it was.

    Args:
        include_hidden: Also visit hidden worksheets.
        global_resolver: Fallback for names absent from the bindings.
        division_by_zero: Arithmetic division-by-zero policy.
    """

    def __init__(
        self,
        *,
        include_hidden: bool = False,
        global_resolver: GlobalResolver | None = None,
        division_by_zero: DivisionPolicy = "error",
    ) -> None:
        self.include_hidden = include_hidden
        self.global_resolver = global_resolver
        self.division_by_zero = division_by_zero

    def expand(self, workbook: Workbook, bindings: VariableBindings) -> ExpansionResult:
        resolver = VariableResolver(
            bindings,
            self.global_resolver,
            division_by_zero=self.division_by_zero,
        )
        errors: list[TemplateError] = []
        substituted = 0

        for sheet in workbook.worksheets:
            if not (sheet.visible or self.include_hidden):
                continue
            for cell in list(sheet.iter_cells()):
                try:
                    if self._substitute(cell, resolver, errors):
                        substituted += 1
                except Exception as e:
                    logger.warning(
                        "substitution_failed",
                        cell=f"{cell.sheet_name}!{cell.address}",
                        error=str(e),
                    )
                    errors.append(
                        TemplateError(
                            f"Error substituting cell: {e}",
                            sheet=cell.sheet_name,
                            address=cell.address,
                        )
                    )

        logger.debug("standard_substitution_finished", cells=substituted, errors=len(errors))
        return ExpansionResult(errors=tuple(errors))

    def _substitute(
        self,
        cell: CellHandle,
        resolver: VariableResolver,
        errors: list[TemplateError],
    ) -> bool:
        """Substitute the standard expressions of one cell; True if written."""
        text = cell_text(cell)
        expressions = extract_expressions(text)
        if not expressions:
            return False

        whole = len(expressions) == 1 and text.strip() == expressions[0]
        rendered = text
        for raw in expressions:
            try:
                parsed = parse_expression(raw)
            except MalformedExpressionError as e:
                errors.append(
                    TemplateError(
                        f"{SYNTAX_ERROR_PREFIX}: {e.message}",
                        sheet=cell.sheet_name,
                        address=cell.address,
                        expression=raw,
                    )
                )
                continue
            if parsed.kind is not ExpressionKind.STANDARD:
                continue

            value = resolver.resolve(parsed.variable_text)
            if value is MISSING:
                continue
            if whole:
                cell.set_value(value)
                return True
            rendered = rendered.replace(raw, display_text(value), 1)

        if rendered == text:
            return False
        cell.set_value(rendered)
        return True
