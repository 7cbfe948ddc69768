from __future__ import annotations

from typing import Any

from celltemplate.exceptions.base import CellTemplateError


class ConfigError(CellTemplateError):
    """Exception for configuration loading, parsing, and validation errors.

    Raised when settings cannot be loaded from YAML, fail pydantic validation,
    or come from an invalid environment variable.

    Attributes:
        message: Human-readable error message describing the configuration issue.
        field: Optional field name that caused the error (e.g., "division_by_zero").
        value: Optional value that failed validation (for debugging).

    Examples:
        ```python
        raise ConfigError(
            "Invalid configuration value",
            field="division_by_zero",
            value="explode",
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional field name that caused the error.
            value: Optional value that failed validation.
        """
        self.field = field
        self.value = value
        super().__init__(message)
