"""Expression error types.

Only malformed syntax raises. An unresolved variable, an unknown formatter or
an unknown function is reported through values, never through exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass

from celltemplate.exceptions import CellTemplateError


class ExpressionError(CellTemplateError):
    """Base exception for all expression-related errors.

    Attributes:
        message: Human-readable error message.
        expression: The expression that caused the error (if known).
    """

    def __init__(
        self,
        message: str,
        expression: str | None = None,
    ) -> None:
        self.expression = expression
        super().__init__(message)


class MalformedExpressionError(ExpressionError):
    """Raised when a ``{{...}}`` substring cannot be split into a known shape.

    Examples are an empty body (``{{}}``), a delimiter with nothing on one
    side (``{{:upper}}``) or text that is not a single balanced expression.

    Attributes:
        message: Human-readable error message.
        expression: The text that failed to parse.
        position: Character offset of the problem (0 if not applicable).
    """

    def __init__(
        self,
        message: str,
        expression: str,
        position: int = 0,
    ) -> None:
        self.position = position
        if position > 0 and expression:
            error_line = f"{expression}\n{' ' * position}^"
            full_message = f"{message} at position {position}:\n{error_line}"
        else:
            full_message = f"{message}: {expression}"
        super().__init__(full_message, expression=expression)

    def to_info(self) -> ExpressionErrorInfo:
        """Snapshot this error as an immutable record."""
        return ExpressionErrorInfo(
            expression=self.expression or "",
            message=self.message,
            position=self.position,
        )


@dataclass(frozen=True, slots=True)
class ExpressionErrorInfo:
    """Expression error information for reporting.

    Attributes:
        expression: The expression that failed.
        message: Human-readable error message.
        position: Character position in expression (0 if not applicable).
    """

    expression: str
    message: str
    position: int = 0
