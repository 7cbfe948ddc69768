"""Two-pass cell rewriting around an external expansion engine.

Per cell: untouched -> placeholder (pre-pass) -> expanded (engine) -> final
value (post-pass), with an error-marked state reachable from any step.

Pre-pass
    Every resolvable format/function expression is evaluated. The result is
    bound to a fresh temporary variable and the expression text is replaced
    by ``{{<temporary>}}``, which the engine then substitutes like any other
    standard expression.

Post-pass
    Cells still holding format/function syntax (their variable was only
    available after expansion) are evaluated directly against the engine's
    per-cell scope. Text starting with ``&=`` is written as a formula.

Each pass visits a cell at most once, tracked by ``Sheet!A1``.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterator, Mapping
from typing import Any

from celltemplate.constants import (
    COUNT_SUFFIX,
    DEFAULT_TEMP_VARIABLE_PREFIX,
    EXPRESSION_CLOSE,
    EXPRESSION_OPEN,
    FORMULA_PREFIX,
)
from celltemplate.document.protocols import (
    CellHandle,
    Workbook,
    cell_key,
    cell_text,
)
from celltemplate.expressions.errors import MalformedExpressionError
from celltemplate.expressions.evaluator import ExpressionEvaluator
from celltemplate.expressions.parser import (
    extract_expressions,
    is_enhanced_expression,
    parse_expression,
)
from celltemplate.expressions.resolver import VariableBindings
from celltemplate.expressions.values import MISSING, display_text
from celltemplate.logging import get_logger

__all__ = ["CellRewriteOrchestrator"]

logger = get_logger(__name__)

_COUNT_EXPRESSION = re.compile(r"\{\{\s*([^{}.\s]+)\.Count\s*\}\}")


class CellRewriteOrchestrator:
    """Run the collection-metadata step, the pre-pass and the post-pass.

    The orchestrator holds the state of one generation run: temporary
    bindings it created and the cells each pass has visited.

    Args:
        evaluator: Evaluator shared with the template (its resolver reads
            ``bindings``).
        bindings: Binding table that receives temporary variables.
        temp_prefix: Prefix of temporary variable names.
        include_hidden: Also visit hidden worksheets.
    """

    def __init__(
        self,
        evaluator: ExpressionEvaluator,
        bindings: VariableBindings,
        *,
        temp_prefix: str = DEFAULT_TEMP_VARIABLE_PREFIX,
        include_hidden: bool = False,
    ) -> None:
        self.evaluator = evaluator
        self.bindings = bindings
        self.temp_prefix = temp_prefix
        self.include_hidden = include_hidden
        self._temporaries: list[str] = []
        self._preprocessed: set[str] = set()
        self._visited: set[str] = set()

    @property
    def temporaries(self) -> tuple[str, ...]:
        """Temporary variable names bound so far, in creation order."""
        return tuple(self._temporaries)

    @property
    def preprocessed_cells(self) -> frozenset[str]:
        """``Sheet!A1`` keys of cells rewritten before expansion."""
        return frozenset(self._preprocessed)

    def was_preprocessed(self, key: str | None) -> bool:
        return key is not None and key in self._preprocessed

    # =========================================================================
    # Whole-workbook passes
    # =========================================================================

    def process_collection_metadata(self, workbook: Workbook) -> int:
        """Bind ``X_Count`` for every ``{{X.Count}}`` on a bound collection.

        The cell text is rewritten to ``{{X_Count}}`` so that the engine can
        substitute it.

        Returns:
            Number of cells rewritten.
        """
        rewritten = 0
        for cell in self._cells(workbook):
            text = cell_text(cell)
            if ".Count" not in text:
                continue

            def _bind(match: re.Match[str]) -> str:
                name = match.group(1)
                count_name = f"{name}{COUNT_SUFFIX}"
                if count_name not in self.bindings:
                    count = self.evaluator.resolver.resolve(count_name)
                    if count is MISSING:
                        return match.group(0)
                    self.bindings[count_name] = count
                return f"{EXPRESSION_OPEN}{count_name}{EXPRESSION_CLOSE}"

            updated = _COUNT_EXPRESSION.sub(_bind, text)
            if updated != text:
                cell.set_value(updated)
                self._preprocessed.add(cell_key(cell))
                rewritten += 1

        logger.debug("collection_metadata_processed", cells=rewritten)
        return rewritten

    def run_pre_pass(self, workbook: Workbook) -> int:
        """Apply :meth:`before_expansion` to every cell, in document order.

        Returns:
            Number of cells rewritten.
        """
        self._visited.clear()
        rewritten = sum(1 for cell in self._cells(workbook) if self.before_expansion(cell))
        logger.info("pre_pass_finished", cells=rewritten, temporaries=len(self._temporaries))
        return rewritten

    def run_post_pass(
        self,
        workbook: Workbook,
        cell_scopes: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> int:
        """Apply :meth:`after_expansion` to every cell, in document order.

        Args:
            workbook: Workbook after the engine ran.
            cell_scopes: Per-cell iteration bindings reported by the engine.

        Returns:
            Number of cells written.
        """
        self._visited.clear()
        scopes = cell_scopes or {}
        written = sum(
            1
            for cell in self._cells(workbook)
            if self.after_expansion(cell, scopes.get(cell_key(cell)))
        )
        logger.info("post_pass_finished", cells=written)
        return written

    def release_temporaries(self) -> None:
        """Remove temporary variables from the binding table."""
        for name in self._temporaries:
            self.bindings.pop(name, None)
        self._temporaries.clear()

    # =========================================================================
    # Per-cell hooks
    # =========================================================================

    def before_expansion(self, cell: CellHandle) -> bool:
        """Replace resolvable enhanced expressions with temporary references.

        Standard expressions and enhanced expressions whose variable cannot
        be resolved yet are left for the engine and the post-pass.

        Returns:
            True if the cell text was rewritten.
        """
        text = cell_text(cell)
        if not is_enhanced_expression(text) or not self._first_visit(cell):
            return False

        try:
            rewritten = text
            for raw in extract_expressions(text):
                try:
                    parsed = parse_expression(raw)
                except MalformedExpressionError as e:
                    logger.warning(
                        "malformed_expression", cell=cell_key(cell), error=e.message
                    )
                    continue
                if not parsed.is_enhanced:
                    continue

                outcome = self.evaluator.evaluate_detailed(parsed, cell)
                if not outcome.resolved:
                    continue

                temporary = self._bind_temporary(outcome.value)
                rewritten = rewritten.replace(
                    raw, f"{EXPRESSION_OPEN}{temporary}{EXPRESSION_CLOSE}", 1
                )
        except Exception as e:
            self._fail(cell, "Error preprocessing cell", e)
            return True

        if rewritten == text:
            return False
        cell.set_value(rewritten)
        self._preprocessed.add(cell_key(cell))
        return True

    def after_expansion(
        self,
        cell: CellHandle,
        scope: Mapping[str, Any] | None = None,
    ) -> bool:
        """Evaluate what the engine left in ``cell`` and write ``&=`` formulas.

        Args:
            cell: Cell after expansion.
            scope: Iteration bindings of this cell, if the engine reported any.

        Returns:
            True if the cell was written.
        """
        text = cell_text(cell)
        is_formula = text.startswith(FORMULA_PREFIX)
        if not (is_formula or is_enhanced_expression(text)) or not self._first_visit(cell):
            return False

        try:
            if is_formula:
                formula = self.evaluator.render(text[len(FORMULA_PREFIX) :], cell, scope)
                cell.set_formula(display_text(formula))
            else:
                cell.set_value(self.evaluator.render(text, cell, scope))
        except Exception as e:
            self._fail(cell, "Error processing cell", e)
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _cells(self, workbook: Workbook) -> Iterator[CellHandle]:
        for sheet in workbook.worksheets:
            if not (sheet.visible or self.include_hidden):
                continue
            # Snapshot: handlers may create cells while we iterate
            yield from list(sheet.iter_cells())

    def _first_visit(self, cell: CellHandle) -> bool:
        key = cell_key(cell)
        if key in self._visited:
            return False
        self._visited.add(key)
        return True

    def _bind_temporary(self, value: Any) -> str:
        name = f"{self.temp_prefix}{uuid.uuid4().hex}"
        self.bindings[name] = value
        self._temporaries.append(name)
        return name

    def _fail(self, cell: CellHandle, context: str, error: Exception) -> None:
        logger.warning("cell_rewrite_failed", cell=cell_key(cell), error=str(error))
        self.evaluator.record_error(f"{context}: {error}", cell)
        cell.set_value(f"Error: {error}")
        self.evaluator.mark_error(cell)
