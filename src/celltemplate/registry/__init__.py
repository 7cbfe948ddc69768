"""Formatter and function registries.

- FormatterRegistry: pure ``(value, parameters) -> value`` handlers
- FunctionRegistry: cell-mutating ``(cell, value, parameters) -> None`` handlers
- TemplateRegistry: facade pairing both, owned by one template

Names are case-insensitive and the last registration wins.
"""

from __future__ import annotations

from celltemplate.registry.base import HandlerRegistry
from celltemplate.registry.formatters import FormatterRegistry
from celltemplate.registry.functions import FunctionRegistry
from celltemplate.registry.protocol import (
    FormatterObject,
    FormatterType,
    FunctionObject,
    FunctionType,
    Registry,
)
from celltemplate.registry.template_registry import TemplateRegistry

__all__ = [
    "HandlerRegistry",
    "FormatterRegistry",
    "FunctionRegistry",
    "TemplateRegistry",
    "Registry",
    "FormatterType",
    "FunctionType",
    "FormatterObject",
    "FunctionObject",
]
