"""Template facade: bindings, registries and the generation run."""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Mapping
from typing import Any

from celltemplate.builtins import register_builtins
from celltemplate.config import TemplateSettings
from celltemplate.document.protocols import Workbook
from celltemplate.expressions.evaluator import ExpressionEvaluator
from celltemplate.expressions.resolver import (
    GlobalResolver,
    VariableBindings,
    VariableResolver,
)
from celltemplate.expressions.values import MISSING
from celltemplate.logging import bind_context, get_logger, unbind_context
from celltemplate.registry import TemplateRegistry
from celltemplate.registry.protocol import FormatterType, FunctionType
from celltemplate.results import GenerateResult, TemplateError, TemplateErrors
from celltemplate.template.engine import ExpansionEngine, StandardSubstitutionEngine
from celltemplate.template.orchestrator import CellRewriteOrchestrator

__all__ = ["CellTemplate"]

logger = get_logger(__name__)


class CellTemplate:
    """A workbook template together with everything needed to render it.

    Attributes:
        workbook: Workbook rewritten in place by :meth:`generate`.
        registry: Formatter and function registries owned by this template.
        settings: Behaviour settings.
        bindings: Variable binding table.

    Example:
        ```python
        template = CellTemplate(workbook)
        template.add_variable("Name", "john")
        template.register_format("shout", lambda value, params: f"{value}!")
        result = template.generate()
        if result.has_errors:
            for error in result.errors:
                print(error)
        ```
    """

    def __init__(
        self,
        workbook: Workbook,
        *,
        registry: TemplateRegistry | None = None,
        engine: ExpansionEngine | None = None,
        settings: TemplateSettings | None = None,
        global_resolver: GlobalResolver | None = None,
    ) -> None:
        self.workbook = workbook
        self.settings = settings if settings is not None else TemplateSettings()
        self.registry = registry if registry is not None else TemplateRegistry()
        self.bindings = VariableBindings()
        self._engine = engine
        self._global_resolver = global_resolver
        if self.settings.register_builtins:
            register_builtins(self.registry, replace=False)

    # =========================================================================
    # Variables
    # =========================================================================

    def add_variable(self, name: str, value: Any) -> CellTemplate:
        """Bind ``name`` (case-insensitive), replacing any previous value."""
        self.bindings[name] = value
        return self

    def add_variables(self, variables: Mapping[str, Any]) -> CellTemplate:
        for name, value in variables.items():
            self.add_variable(name, value)
        return self

    def add_model(self, model: Any) -> CellTemplate:
        """Bind every public field of ``model`` under its own name.

        Mappings bind their keys, dataclasses their fields and other objects
        their public instance attributes.
        """
        if isinstance(model, Mapping):
            return self.add_variables(model)
        if dataclasses.is_dataclass(model) and not isinstance(model, type):
            return self.add_variables(
                {
                    f.name: getattr(model, f.name)
                    for f in dataclasses.fields(model)
                    if not f.name.startswith("_")
                }
            )
        return self.add_variables(
            {name: value for name, value in vars(model).items() if not name.startswith("_")}
        )

    def set_global_resolver(self, resolver: GlobalResolver | None) -> CellTemplate:
        """Set the fallback consulted for names absent from the bindings."""
        self._global_resolver = resolver
        return self

    def resolve(self, variable_text: str) -> Any:
        """Resolve ``variable_text`` now; None when it cannot be resolved."""
        value = self._resolver().resolve(variable_text)
        return None if value is MISSING else value

    # =========================================================================
    # Handlers
    # =========================================================================

    def register_format(self, name: str, formatter: FormatterType | Any) -> CellTemplate:
        self.registry.formatters.register(name, formatter)
        return self

    def register_function(self, name: str, function: FunctionType | Any) -> CellTemplate:
        self.registry.functions.register(name, function)
        return self

    def registered_formatters(self) -> list[str]:
        return self.registry.formatters.list_names()

    def registered_functions(self) -> list[str]:
        return self.registry.functions.list_names()

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(self) -> GenerateResult:
        """Render the workbook in place.

        Runs the collection-metadata step, the pre-pass, the expansion engine
        and the post-pass. Registries are sealed for the duration of the run.
        Unexpected errors are caught here and reported as one error alongside
        whatever output was produced.

        Returns:
            The workbook and the errors recorded during the run.
        """
        errors = TemplateErrors()
        evaluator = ExpressionEvaluator(
            self._resolver(),
            self.registry,
            errors,
            error_font_color=self.settings.error_font_color,
        )
        orchestrator = CellRewriteOrchestrator(
            evaluator,
            self.bindings,
            temp_prefix=self.settings.temp_variable_prefix,
            include_hidden=self.settings.process_hidden_sheets,
        )

        bind_context(generation_id=uuid.uuid4().hex[:12])
        logger.info("generation_started", variables=len(self.bindings))
        try:
            with self.registry.sealed():
                orchestrator.process_collection_metadata(self.workbook)
                orchestrator.run_pre_pass(self.workbook)
                expansion = self._expansion_engine().expand(self.workbook, self.bindings)
                orchestrator.run_post_pass(self.workbook, expansion.cell_scopes)

            for error in expansion.errors:
                if error.is_syntax_error and orchestrator.was_preprocessed(error.cell_key):
                    continue
                errors.add(error)
        except Exception as e:
            logger.exception("generation_failed")
            errors.add(TemplateError(f"Unexpected error: {e}"))
        finally:
            orchestrator.release_temporaries()
            logger.info("generation_finished", errors=len(errors))
            unbind_context("generation_id")

        return GenerateResult(workbook=self.workbook, errors=tuple(errors))

    def _resolver(self) -> VariableResolver:
        return VariableResolver(
            self.bindings,
            self._global_resolver,
            division_by_zero=self.settings.division_by_zero,
        )

    def _expansion_engine(self) -> ExpansionEngine:
        if self._engine is not None:
            return self._engine
        return StandardSubstitutionEngine(
            include_hidden=self.settings.process_hidden_sheets,
            global_resolver=self._global_resolver,
            division_by_zero=self.settings.division_by_zero,
        )
