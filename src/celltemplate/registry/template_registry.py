"""Registry facade handed to the evaluator."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from celltemplate.registry.formatters import FormatterRegistry
from celltemplate.registry.functions import FunctionRegistry


class TemplateRegistry:
    """Facade pairing one formatter registry with one function registry.

    Each template owns its own instance; there is no process-wide registry,
    so registrations never leak between templates or tests.

    Attributes:
        formatters: Registry for format expressions (``{{x:name}}``).
        functions: Registry for function expressions (``{{x|name}}``).

    Example:
        ```python
        registry = TemplateRegistry()
        registry.formatters.register("upper", lambda v, p: str(v).upper())

        # Share formatters between two templates
        shared = TemplateRegistry(formatters=registry.formatters)
        ```
    """

    def __init__(
        self,
        formatters: FormatterRegistry | None = None,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self.formatters = formatters if formatters is not None else FormatterRegistry()
        self.functions = functions if functions is not None else FunctionRegistry()

    @contextmanager
    def sealed(self) -> Iterator[TemplateRegistry]:
        """Reject registrations for the duration of the block.

        Re-entrant: an outer block keeps the registries sealed.
        """
        was_sealed = (self.formatters.sealed, self.functions.sealed)
        self.formatters.seal()
        self.functions.seal()
        try:
            yield self
        finally:
            if not was_sealed[0]:
                self.formatters.unseal()
            if not was_sealed[1]:
                self.functions.unseal()
