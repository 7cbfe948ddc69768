"""Unit tests for single-operator arithmetic."""

from __future__ import annotations

from typing import Any

import pytest

from celltemplate.expressions.arithmetic import evaluate_arithmetic, find_operator
from celltemplate.expressions.values import DIVISION_BY_ZERO, MISSING

VALUES: dict[str, Any] = {
    "Price": 10,
    "Qty": 3,
    "Rate": 0.5,
    "Zero": 0,
    "Name": "John",
    "Suffix": "ny",
    "Text": "abc",
}


def _resolve(name: str) -> Any:
    return VALUES.get(name, MISSING)


class TestFindOperator:
    """Test operator detection."""

    def test_spaced_operators(self) -> None:
        assert find_operator("a * b") == " * "
        assert find_operator("a / b") == " / "
        assert find_operator("a + b") == " + "
        assert find_operator("a - b") == " - "

    def test_unspaced_operators_ignored(self) -> None:
        """Hyphenated names are not subtraction."""
        assert find_operator("first-name") is None
        assert find_operator("a*b") is None


class TestEvaluateArithmetic:
    """Test evaluation of <left> <op> <right>."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Price * Qty", 30),
            ("Price / Qty", pytest.approx(3.3333333333)),
            ("Price + Qty", 13),
            ("Price - Qty", 7),
            ("Price * Rate", 5),
            ("Qty * Rate", 1.5),
        ],
    )
    def test_variable_operands(self, text: str, expected: Any) -> None:
        assert evaluate_arithmetic(text, _resolve) == expected

    def test_integral_result_is_int(self) -> None:
        result = evaluate_arithmetic("Price * Rate", _resolve)
        assert result == 5
        assert isinstance(result, int)

    def test_literal_operands(self) -> None:
        """Decimal literals are used as numbers."""
        assert evaluate_arithmetic("Price * 1.5", _resolve) == 15
        assert evaluate_arithmetic("2 + 3", _resolve) == 5
        assert evaluate_arithmetic("0.1 + 0.2", _resolve) == pytest.approx(0.3)

    def test_division_by_zero_error_value(self) -> None:
        """Division by zero yields #DIV/0! by default."""
        assert evaluate_arithmetic("Price / Zero", _resolve) is DIVISION_BY_ZERO
        assert str(DIVISION_BY_ZERO) == "#DIV/0!"

    def test_division_by_zero_policy_zero(self) -> None:
        assert evaluate_arithmetic("Price / Zero", _resolve, division_by_zero="zero") == 0

    def test_plus_concatenates_text(self) -> None:
        assert evaluate_arithmetic("Name + Suffix", _resolve) == "Johnny"

    def test_other_operators_on_text_unresolved(self) -> None:
        assert evaluate_arithmetic("Text * Qty", _resolve) is MISSING

    def test_unresolved_operand(self) -> None:
        assert evaluate_arithmetic("Price * Unknown", _resolve) is MISSING

    def test_chained_operators_unsupported(self) -> None:
        """No precedence and no chaining."""
        assert evaluate_arithmetic("Price * Qty * Qty", _resolve) is MISSING

    @pytest.mark.parametrize("text", ["10 - 2 * 3", "Price * Qty - 1", "Price + Qty / Qty"])
    def test_mixed_operators_unsupported(self, text: str) -> None:
        """A second operator of another kind is not evaluated right-to-left."""
        assert evaluate_arithmetic(text, _resolve) is MISSING

    def test_no_operator(self) -> None:
        assert evaluate_arithmetic("Price", _resolve) is MISSING
