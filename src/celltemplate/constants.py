"""Celltemplate constants.

Single source of truth for the expression delimiters and the defaults that the
configuration layer falls back to.
"""

from __future__ import annotations

# =============================================================================
# Expression Syntax
# =============================================================================

#: Opening delimiter of a cell expression
EXPRESSION_OPEN: str = "{{"

#: Closing delimiter of a cell expression
EXPRESSION_CLOSE: str = "}}"

#: Delimiter introducing a function (cell-mutating) operation
FUNCTION_DELIMITER: str = "|"

#: Delimiter introducing a format (pure) operation
FORMAT_DELIMITER: str = ":"

#: Prefix marking a cell whose evaluated text is written as a formula
FORMULA_PREFIX: str = "&="

#: Suffix of the synthetic variable holding a collection's element count
COUNT_SUFFIX: str = "_Count"

#: Member name recognised as collection metadata in ``{{name.Count}}``
COUNT_MEMBER: str = "Count"

#: Binary arithmetic operators, in the order they are tried
ARITHMETIC_OPERATORS: tuple[str, ...] = (" * ", " / ", " + ", " - ")

# =============================================================================
# Defaults
# =============================================================================

#: Prefix of temporary variables bound during the pre-pass
DEFAULT_TEMP_VARIABLE_PREFIX: str = "_temp_"

#: Foreground colour (hex RGB) applied to cells whose handler failed
DEFAULT_ERROR_FONT_COLOR: str = "FF0000"

#: Error code produced by a division by zero in arithmetic expressions
DIVISION_BY_ZERO_CODE: str = "#DIV/0!"

#: Project-level configuration file name
CONFIG_FILE_NAME: str = "celltemplate.yaml"
