"""Validation helpers for handler registration."""

from __future__ import annotations

from typing import Any

__all__ = [
    "validate_name",
    "validate_callable",
]


def validate_name(name: Any, handler_kind: str) -> str:
    """Validate and trim a handler name.

    Raises:
        ValueError: If the name is empty or not a string.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{handler_kind.capitalize()} name cannot be empty")
    return name.strip()


def validate_callable(component: Any, component_name: str) -> None:
    """Validate that a component is callable.

    Args:
        component: Component to validate.
        component_name: Name of the component (for error messages).

    Raises:
        TypeError: If component is not callable.

    Example:
        ```python
        validate_callable(str.upper, "upper")
        ```
    """
    if not callable(component):
        raise TypeError(
            f"Component '{component_name}' must be callable. "
            f"Got {type(component).__name__} instead."
        )
