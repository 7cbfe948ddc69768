"""Unit tests for expression evaluation and handler dispatch."""

from __future__ import annotations

from typing import Any

import pytest

from celltemplate.document import MemoryWorksheet
from celltemplate.document.protocols import CellHandle
from celltemplate.expressions.evaluator import ExpressionEvaluator
from celltemplate.expressions.parser import parse_expression
from celltemplate.expressions.resolver import VariableBindings, VariableResolver
from celltemplate.registry import TemplateRegistry
from celltemplate.results import TemplateErrors


def _bold(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    cell.set_style(bold=True)
    cell.set_value(value)


def _explode(value: Any, parameters: list[str]) -> Any:
    raise RuntimeError("boom")


@pytest.fixture
def bindings() -> VariableBindings:
    return VariableBindings(
        {
            "Name": "john",
            "Amount": 1234.5,
            "item": {"Price": 10, "Qty": 3},
        }
    )


@pytest.fixture
def evaluator(bindings: VariableBindings, registry: TemplateRegistry) -> ExpressionEvaluator:
    registry.formatters.register("upper", lambda value, params: str(value).upper())
    registry.formatters.register("explode", _explode)
    registry.functions.register("bold", _bold)
    return ExpressionEvaluator(VariableResolver(bindings), registry, TemplateErrors())


class TestEvaluateStandard:
    """Test standard expressions."""

    def test_resolved_value_is_typed(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.evaluate(parse_expression("{{Amount}}")) == 1234.5

    def test_unresolved_keeps_placeholder(self, evaluator: ExpressionEvaluator) -> None:
        """Unknown names leave the original text in place."""
        outcome = evaluator.evaluate_detailed(parse_expression("{{Unknown}}"))
        assert outcome.value == "{{Unknown}}"
        assert outcome.resolved is False
        assert not evaluator.errors


class TestEvaluateFormat:
    """Test format expressions."""

    def test_registered_formatter(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.evaluate(parse_expression("{{Name:upper}}")) == "JOHN"

    def test_formatter_name_ignores_case(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.evaluate(parse_expression("{{Name:UPPER}}")) == "JOHN"

    def test_native_pattern_fallback(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.evaluate(parse_expression("{{Amount:N2}}")) == "1,234.50"
        assert evaluator.evaluate(parse_expression("{{Amount:#,##0.0}}")) == "1,234.5"

    def test_unknown_formatter_returns_raw_value(
        self, evaluator: ExpressionEvaluator
    ) -> None:
        assert evaluator.evaluate(parse_expression("{{Name:shout}}")) == "john"

    def test_unresolved_variable_keeps_placeholder(
        self, evaluator: ExpressionEvaluator
    ) -> None:
        assert evaluator.evaluate(parse_expression("{{Nope:upper}}")) == "{{Nope:upper}}"

    def test_raising_member_keeps_placeholder(self, evaluator: ExpressionEvaluator) -> None:
        """A property that raises counts as unresolved."""

        class Sensor:
            @property
            def reading(self) -> str:
                raise RuntimeError("sensor offline")

        evaluator.resolver.bindings["sensor"] = Sensor()
        expression = parse_expression("{{sensor.reading:upper}}")
        assert evaluator.evaluate(expression) == "{{sensor.reading:upper}}"
        assert not evaluator.errors

    def test_formatter_failure_is_contained(
        self, evaluator: ExpressionEvaluator, sheet: MemoryWorksheet
    ) -> None:
        """A raising formatter yields an error value, a record and a red cell."""
        cell = sheet["B2"]
        outcome = evaluator.evaluate_detailed(parse_expression("{{Name:explode}}"), cell)

        assert outcome.value == "Error: boom"
        assert outcome.failed is True
        errors = list(evaluator.errors)
        assert len(errors) == 1
        assert errors[0].cell_key == "Sheet1!B2"
        assert "explode" in errors[0].message
        assert cell.style.font_color == "FF0000"

    def test_formatter_failure_without_cell(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.evaluate(parse_expression("{{Name:explode}}")) == "Error: boom"
        assert list(evaluator.errors)[0].cell_key is None

    def test_formatter_object(
        self, bindings: VariableBindings, registry: TemplateRegistry
    ) -> None:
        """Objects exposing format() are accepted as formatters."""

        class Reverse:
            def format(self, value: Any, parameters: list[str]) -> Any:
                return str(value)[::-1]

        registry.formatters.register("reverse", Reverse())
        evaluator = ExpressionEvaluator(VariableResolver(bindings), registry)
        assert evaluator.evaluate(parse_expression("{{Name:reverse}}")) == "nhoj"


class TestEvaluateFunction:
    """Test function expressions."""

    def test_function_sets_cell_and_value_is_read_back(
        self, evaluator: ExpressionEvaluator, sheet: MemoryWorksheet
    ) -> None:
        cell = sheet["A1"]
        assert evaluator.evaluate(parse_expression("{{Name|bold}}"), cell) == "john"
        assert cell.value == "john"
        assert cell.style.bold is True

    def test_unknown_function(
        self, evaluator: ExpressionEvaluator, sheet: MemoryWorksheet
    ) -> None:
        """An unknown function is reported in place and the cell is untouched."""
        cell = sheet["A1"]
        cell.value = "{{Name|nope}}"
        value = evaluator.evaluate(parse_expression("{{Name|nope}}"), cell)
        assert value == "Unknown function 'nope'"
        assert cell.value == "{{Name|nope}}"
        assert cell.style.bold is False

    def test_function_without_cell_returns_value(
        self, evaluator: ExpressionEvaluator
    ) -> None:
        assert evaluator.evaluate(parse_expression("{{Name|bold}}")) == "john"

    def test_function_failure_is_contained(
        self, evaluator: ExpressionEvaluator, sheet: MemoryWorksheet
    ) -> None:
        def _fail(cell: CellHandle, value: Any, parameters: list[str]) -> None:
            raise ValueError("bad cell")

        evaluator.registry.functions.register("fail", _fail)
        cell = sheet["C3"]
        assert evaluator.evaluate(parse_expression("{{Name|fail}}"), cell) == "Error: bad cell"
        assert cell.style.font_color == "FF0000"
        assert len(evaluator.errors) == 1

    def test_function_object(
        self, evaluator: ExpressionEvaluator, sheet: MemoryWorksheet
    ) -> None:
        """Objects exposing process() are accepted as functions."""

        class Stamp:
            def process(self, cell: CellHandle, value: Any, parameters: list[str]) -> None:
                cell.set_value(f"{value}-{parameters[0]}")

        evaluator.registry.functions.register("stamp", Stamp())
        cell = sheet["A1"]
        assert evaluator.evaluate(parse_expression("{{Name|stamp(x)}}"), cell) == "john-x"


class TestRender:
    """Test evaluating every expression of a text."""

    def test_whole_cell_expression_keeps_type(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.render("{{item.Price * item.Qty}}") == 30

    def test_mixed_text(self, evaluator: ExpressionEvaluator) -> None:
        text = "Dear {{Name:upper}}, you owe {{Amount:N2}}"
        assert evaluator.render(text) == "Dear JOHN, you owe 1,234.50"

    def test_unresolved_and_malformed_are_kept(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.render("{{Name}} {{}} {{Nope}}") == "john {{}} {{Nope}}"

    def test_scope(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.render("{{row:upper}}", scope={"row": "x"}) == "X"

    def test_text_without_expressions(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.render("plain") == "plain"

    def test_custom_error_colour(
        self, bindings: VariableBindings, registry: TemplateRegistry, sheet: MemoryWorksheet
    ) -> None:
        registry.formatters.register("explode", _explode)
        evaluator = ExpressionEvaluator(
            VariableResolver(bindings), registry, error_font_color="C00000"
        )
        cell = sheet["A1"]
        evaluator.render("{{Name:explode}}", cell)
        assert cell.style.font_color == "C00000"
