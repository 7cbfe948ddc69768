"""Built-in formatters and functions.

Registered on every :class:`~celltemplate.template.CellTemplate` unless
``register_builtins`` is disabled in the settings. User registrations with
the same name replace them.
"""

from __future__ import annotations

from celltemplate.builtins.formatters import BUILTIN_FORMATTERS
from celltemplate.builtins.functions import BUILTIN_FUNCTIONS, parse_color
from celltemplate.logging import get_logger
from celltemplate.registry import TemplateRegistry

__all__ = [
    "BUILTIN_FORMATTERS",
    "BUILTIN_FUNCTIONS",
    "parse_color",
    "register_builtin_formatters",
    "register_builtin_functions",
    "register_builtins",
]

logger = get_logger(__name__)


def register_builtin_formatters(registry: TemplateRegistry, *, replace: bool = True) -> None:
    for name, formatter in BUILTIN_FORMATTERS.items():
        if not replace and registry.formatters.is_registered(name):
            continue
        registry.formatters.register(name, formatter)


def register_builtin_functions(registry: TemplateRegistry, *, replace: bool = True) -> None:
    for name, function in BUILTIN_FUNCTIONS.items():
        if not replace and registry.functions.is_registered(name):
            continue
        registry.functions.register(name, function)


def register_builtins(registry: TemplateRegistry, *, replace: bool = True) -> TemplateRegistry:
    """Register every built-in formatter and function on ``registry``.

    Args:
        registry: Target registry.
        replace: When False, names already registered are left alone.

    Returns:
        The same registry, for chaining.
    """
    register_builtin_formatters(registry, replace=replace)
    register_builtin_functions(registry, replace=replace)
    logger.debug(
        "builtins_registered",
        formatters=len(BUILTIN_FORMATTERS),
        functions=len(BUILTIN_FUNCTIONS),
    )
    return registry
