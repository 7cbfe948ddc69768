"""Formatter registry.

Formatters transform a resolved value without side effects:

    registry = FormatterRegistry()
    registry.register("upper", lambda value, parameters: str(value).upper())
"""

from __future__ import annotations

from typing import Any

from celltemplate.registry.base import HandlerRegistry
from celltemplate.registry.protocol import FormatterObject, FormatterType
from celltemplate.registry.validation import validate_callable


class FormatterRegistry(HandlerRegistry[FormatterType]):
    """Registry of ``(value, parameters) -> value`` formatters.

    Accepts plain callables and objects exposing ``format(value, parameters)``.
    """

    handler_kind = "formatter"

    def _coerce(self, handler: Any, name: str) -> FormatterType:
        if (
            not callable(handler)
            and not isinstance(handler, str)
            and isinstance(handler, FormatterObject)
        ):
            bound: FormatterType = handler.format
            return bound
        validate_callable(handler, name)
        plain: FormatterType = handler
        return plain
