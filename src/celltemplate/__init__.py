"""Expressions embedded in spreadsheet cells.

Cells hold ``{{...}}`` expressions that are evaluated against bound
variables when the template is generated:

    >>> from celltemplate import CellTemplate, MemoryWorkbook
    >>> workbook = MemoryWorkbook()
    >>> sheet = workbook.create_sheet("Sheet1")
    >>> sheet["A1"] = "{{Name:upper}}"
    >>> sheet["A2"] = "{{Total:currency(EUR)}}"
    >>> template = CellTemplate(workbook)
    >>> template.add_variables({"Name": "john", "Total": 1234.5})
    >>> result = template.generate()
    >>> sheet["A1"].value, sheet["A2"].value
    ('JOHN', '1 234,50 €')
"""

from __future__ import annotations

from celltemplate.builtins import register_builtins
from celltemplate.config import (
    TemplateSettings,
    configure_logging_from_settings,
    load_settings,
)
from celltemplate.document import (
    CellHandle,
    CellStyle,
    MemoryWorkbook,
    Workbook,
    Worksheet,
)
from celltemplate.exceptions import (
    CellTemplateError,
    ConfigError,
    RegistrationClosedError,
)
from celltemplate.expressions import (
    ExpressionKind,
    MalformedExpressionError,
    ParsedExpression,
    VariableBindings,
    parse_expression,
)
from celltemplate.logging import configure_logging, get_logger
from celltemplate.registry import TemplateRegistry
from celltemplate.results import GenerateResult, TemplateError, TemplateErrors
from celltemplate.template import (
    CellTemplate,
    ExpansionEngine,
    ExpansionResult,
    StandardSubstitutionEngine,
    diagnose_workbook,
    log_diagnostics,
)

__version__ = "0.1.0"

__all__ = [
    "CellTemplate",
    "GenerateResult",
    "TemplateError",
    "TemplateErrors",
    "TemplateRegistry",
    "TemplateSettings",
    "load_settings",
    "configure_logging_from_settings",
    "register_builtins",
    "VariableBindings",
    "ParsedExpression",
    "ExpressionKind",
    "parse_expression",
    "ExpansionEngine",
    "ExpansionResult",
    "StandardSubstitutionEngine",
    "CellHandle",
    "CellStyle",
    "Workbook",
    "Worksheet",
    "MemoryWorkbook",
    "CellTemplateError",
    "ConfigError",
    "MalformedExpressionError",
    "RegistrationClosedError",
    "configure_logging",
    "get_logger",
    "diagnose_workbook",
    "log_diagnostics",
]
