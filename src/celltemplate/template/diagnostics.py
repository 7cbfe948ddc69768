"""Workbook statistics and template state dumps for troubleshooting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from celltemplate.document.protocols import Workbook, cell_text
from celltemplate.expressions.errors import MalformedExpressionError
from celltemplate.expressions.parser import (
    ExpressionKind,
    extract_expressions,
    parse_expression,
)
from celltemplate.logging import get_logger

if TYPE_CHECKING:
    from celltemplate.template.template import CellTemplate

__all__ = ["SheetDiagnostics", "diagnose_workbook", "log_diagnostics"]

logger = get_logger(__name__)


@dataclass(slots=True)
class SheetDiagnostics:
    """Expression counts of one worksheet.

    Attributes:
        sheet: Worksheet name.
        visible: Whether the sheet is visible.
        cells: Cells holding at least one expression.
        standard: Standard expressions.
        format: Format expressions.
        function: Function expressions.
        malformed: Addresses of cells with an expression that does not parse.
    """

    sheet: str
    visible: bool = True
    cells: int = 0
    standard: int = 0
    format: int = 0
    function: int = 0
    malformed: list[str] = field(default_factory=list)

    @property
    def expressions(self) -> int:
        return self.standard + self.format + self.function

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet": self.sheet,
            "visible": self.visible,
            "cells": self.cells,
            "standard": self.standard,
            "format": self.format,
            "function": self.function,
            "malformed": list(self.malformed),
        }


def diagnose_workbook(workbook: Workbook) -> list[SheetDiagnostics]:
    """Count the expressions of every worksheet, hidden ones included."""
    report = []
    for sheet in workbook.worksheets:
        stats = SheetDiagnostics(sheet=sheet.name, visible=sheet.visible)
        for cell in sheet.iter_cells():
            expressions = extract_expressions(cell_text(cell))
            if not expressions:
                continue
            stats.cells += 1
            for raw in expressions:
                try:
                    kind = parse_expression(raw).kind
                except MalformedExpressionError:
                    if cell.address not in stats.malformed:
                        stats.malformed.append(cell.address)
                    continue
                if kind is ExpressionKind.FORMAT:
                    stats.format += 1
                elif kind is ExpressionKind.FUNCTION:
                    stats.function += 1
                else:
                    stats.standard += 1
        report.append(stats)
    return report


def log_diagnostics(template: CellTemplate) -> list[SheetDiagnostics]:
    """Log bound variables, registered handlers and per-sheet statistics.

    Returns:
        The per-sheet statistics that were logged.
    """
    logger.info(
        "template_variables",
        count=len(template.bindings),
        names=sorted(template.bindings),
    )
    logger.info(
        "template_handlers",
        formatters=template.registered_formatters(),
        functions=template.registered_functions(),
    )
    report = diagnose_workbook(template.workbook)
    for stats in report:
        logger.info("sheet_diagnostics", **stats.to_dict())
    return report
