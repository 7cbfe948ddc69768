"""Function registry.

Functions receive the target cell and own its value assignment:

    registry = FunctionRegistry()

    @registry.register("bold")
    def bold(cell, value, parameters):
        cell.set_style(bold=True)
        cell.set_value(value)
"""

from __future__ import annotations

from typing import Any

from celltemplate.registry.base import HandlerRegistry
from celltemplate.registry.protocol import FunctionObject, FunctionType
from celltemplate.registry.validation import validate_callable


class FunctionRegistry(HandlerRegistry[FunctionType]):
    """Registry of ``(cell, value, parameters) -> None`` functions.

    Accepts plain callables and objects exposing
    ``process(cell, value, parameters)``.
    """

    handler_kind = "function"

    def _coerce(self, handler: Any, name: str) -> FunctionType:
        if not callable(handler) and isinstance(handler, FunctionObject):
            bound: FunctionType = handler.process
            return bound
        validate_callable(handler, name)
        plain: FunctionType = handler
        return plain
