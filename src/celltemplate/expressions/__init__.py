"""Cell expression language.

Expressions are enclosed in ``{{ }}`` delimiters and come in three shapes:

- ``{{variable}}`` - standard reference
- ``{{variable:formatter(params)}}`` - pure formatting
- ``{{variable|function(params)}}`` - cell-mutating function

The variable part may be a name, a member/index path (``order.Lines[0].Sku``),
a single-operator calculation (``item.Price * item.Qty``) or collection
metadata (``Items.Count``).

Module Structure
----------------
- parser.py: extraction of ``{{...}}`` substrings and parsing into ParsedExpression
- paths.py: member/index path grammar and walking
- arithmetic.py: single-operator calculations
- resolver.py: binding table and resolution order
- native.py: number/date pattern formatting
- evaluator.py: dispatch to formatters and functions with error containment
- errors.py: expression error types
"""

from __future__ import annotations

from celltemplate.expressions.arithmetic import evaluate_arithmetic
from celltemplate.expressions.errors import (
    ExpressionError,
    ExpressionErrorInfo,
    MalformedExpressionError,
)
from celltemplate.expressions.evaluator import Evaluation, ExpressionEvaluator
from celltemplate.expressions.native import format_native
from celltemplate.expressions.parser import (
    ExpressionKind,
    ParsedExpression,
    extract_expressions,
    is_enhanced_expression,
    parse_expression,
    parse_operation,
)
from celltemplate.expressions.paths import get_member, parse_path, walk_path
from celltemplate.expressions.resolver import (
    GlobalResolver,
    VariableBindings,
    VariableResolver,
    resolve,
)
from celltemplate.expressions.values import (
    DIVISION_BY_ZERO,
    MISSING,
    ErrorValue,
)

__all__: list[str] = [
    # Error types
    "ExpressionError",
    "ExpressionErrorInfo",
    "MalformedExpressionError",
    # Parser
    "ExpressionKind",
    "ParsedExpression",
    "extract_expressions",
    "is_enhanced_expression",
    "parse_expression",
    "parse_operation",
    # Resolution
    "GlobalResolver",
    "VariableBindings",
    "VariableResolver",
    "resolve",
    "evaluate_arithmetic",
    "get_member",
    "parse_path",
    "walk_path",
    # Values
    "MISSING",
    "ErrorValue",
    "DIVISION_BY_ZERO",
    # Evaluation
    "Evaluation",
    "ExpressionEvaluator",
    "format_native",
]
