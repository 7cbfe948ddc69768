"""Unit tests for the reference substitution engine."""

from __future__ import annotations

from celltemplate.document import MemoryWorkbook, MemoryWorksheet
from celltemplate.expressions.resolver import VariableBindings
from celltemplate.template.engine import ExpansionResult, StandardSubstitutionEngine


class TestStandardSubstitutionEngine:
    """Test substitution of standard expressions."""

    def test_whole_cell_gets_typed_value(
        self, workbook: MemoryWorkbook, sheet: MemoryWorksheet
    ) -> None:
        sheet["A1"] = "{{Total}}"
        StandardSubstitutionEngine().expand(workbook, VariableBindings({"Total": 42}))
        assert sheet["A1"].value == 42

    def test_mixed_text(self, workbook: MemoryWorkbook, sheet: MemoryWorksheet) -> None:
        sheet["A1"] = "{{A}} + {{B}} = {{C}}"
        StandardSubstitutionEngine().expand(
            workbook, VariableBindings({"A": 1, "B": 2, "C": None})
        )
        assert sheet["A1"].value == "1 + 2 = "

    def test_enhanced_and_unresolved_left_verbatim(
        self, workbook: MemoryWorkbook, sheet: MemoryWorksheet
    ) -> None:
        sheet["A1"] = "{{Name:upper}} {{Name}} {{Nope}}"
        StandardSubstitutionEngine().expand(workbook, VariableBindings({"Name": "x"}))
        assert sheet["A1"].value == "{{Name:upper}} x {{Nope}}"

    def test_malformed_reported_as_syntax_error(
        self, workbook: MemoryWorkbook, sheet: MemoryWorksheet
    ) -> None:
        sheet["B2"] = "{{}}"
        result = StandardSubstitutionEngine().expand(workbook, VariableBindings())
        assert isinstance(result, ExpansionResult)
        (error,) = result.errors
        assert error.is_syntax_error
        assert error.cell_key == "Sheet1!B2"
        assert result.cell_scopes == {}

    def test_hidden_sheet(self, workbook: MemoryWorkbook) -> None:
        hidden = workbook.create_sheet("Hidden", visible=False)
        hidden["A1"] = "{{X}}"
        bindings = VariableBindings({"X": 1})
        StandardSubstitutionEngine().expand(workbook, bindings)
        assert hidden["A1"].value == "{{X}}"
        StandardSubstitutionEngine(include_hidden=True).expand(workbook, bindings)
        assert hidden["A1"].value == 1

    def test_global_resolver_and_division_policy(
        self, workbook: MemoryWorkbook, sheet: MemoryWorksheet
    ) -> None:
        sheet["A1"] = "{{Env}}"
        sheet["A2"] = "{{a / b}}"
        engine = StandardSubstitutionEngine(
            global_resolver={"Env": "prod"}.get, division_by_zero="zero"
        )
        engine.expand(workbook, VariableBindings({"a": 1, "b": 0}))
        assert sheet["A1"].value == "prod"
        assert sheet["A2"].value == 0


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


class TestCellContainment:
    """A cell that fails to substitute does not stop the others."""

    def test_failing_cell_reported_and_later_cells_substituted(
        self, workbook: MemoryWorkbook, sheet: MemoryWorksheet
    ) -> None:
        sheet["A1"] = "Value: {{Bad}}"
        sheet["A2"] = "{{Name}}"

        result = StandardSubstitutionEngine().expand(
            workbook, VariableBindings({"Bad": _Unprintable(), "Name": "john"})
        )

        assert sheet["A1"].value == "Value: {{Bad}}"
        assert sheet["A2"].value == "john"
        (error,) = result.errors
        assert error.cell_key == "Sheet1!A1"
        assert error.message == "Error substituting cell: cannot render"
        assert not error.is_syntax_error
