"""Unit tests for the formatter and function registries."""

from __future__ import annotations

from typing import Any

import pytest

from celltemplate.exceptions import RegistrationClosedError
from celltemplate.registry import (
    FormatterRegistry,
    FunctionRegistry,
    TemplateRegistry,
)
from celltemplate.registry.validation import validate_callable, validate_name


def _upper(value: Any, parameters: list[str]) -> Any:
    return str(value).upper()


def _lower(value: Any, parameters: list[str]) -> Any:
    return str(value).lower()


class TestFormatterRegistry:
    """Test registration and lookup of formatters."""

    def test_register_and_resolve(self) -> None:
        registry = FormatterRegistry()
        registry.register("upper", _upper)
        assert registry.resolve("upper") is _upper
        assert registry.is_registered("upper")
        assert "upper" in registry
        assert len(registry) == 1

    def test_lookup_ignores_case(self) -> None:
        registry = FormatterRegistry()
        registry.register("Upper", _upper)
        assert registry.resolve("UPPER") is _upper
        assert registry.list_names() == ["Upper"]

    def test_last_registration_wins(self) -> None:
        """Re-registering a name replaces the handler."""
        registry = FormatterRegistry()
        registry.register("case", _upper)
        registry.register("CASE", _lower)
        assert registry.resolve("case") is _lower
        assert len(registry) == 1

    def test_decorator_form(self) -> None:
        registry = FormatterRegistry()

        @registry.register("shout")
        def shout(value: Any, parameters: list[str]) -> Any:
            return f"{value}!"

        assert registry.resolve("shout") is shout

    def test_unknown_name(self) -> None:
        registry = FormatterRegistry()
        assert registry.resolve("nope") is None
        assert registry.resolve("") is None
        assert not registry.is_registered("")

    def test_formatter_object(self) -> None:
        """An object with format() is registered through its bound method."""

        class Suffix:
            def format(self, value: Any, parameters: list[str]) -> Any:
                return f"{value}{parameters[0]}"

        registry = FormatterRegistry()
        registry.register("suffix", Suffix())
        formatter = registry.resolve("suffix")
        assert formatter is not None
        assert formatter("a", ["!"]) == "a!"

    @pytest.mark.parametrize("handler", ["text", 42])
    def test_rejects_non_handlers(self, handler: Any) -> None:
        """Strings are not formatter objects even though they have format()."""
        registry = FormatterRegistry()
        with pytest.raises(TypeError):
            registry.register("bad", handler)

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ValueError):
            FormatterRegistry().register("  ", _upper)

    def test_name_is_trimmed(self) -> None:
        registry = FormatterRegistry()
        registry.register(" upper ", _upper)
        assert registry.list_names() == ["upper"]

    def test_unregister(self) -> None:
        registry = FormatterRegistry()
        registry.register("upper", _upper)
        assert registry.unregister("UPPER") is True
        assert registry.unregister("upper") is False


class TestFunctionRegistry:
    """Test registration of functions."""

    def test_function_object(self) -> None:
        class Clear:
            def process(self, cell: Any, value: Any, parameters: list[str]) -> None:
                cell.set_value("")

        registry = FunctionRegistry()
        registry.register("clear", Clear())
        assert registry.resolve("clear") is not None

    def test_object_without_process_rejected(self) -> None:
        with pytest.raises(TypeError):
            FunctionRegistry().register("bad", object())


class TestSealing:
    """Test registration while sealed."""

    def test_sealed_registry_rejects_registration(self) -> None:
        registry = FormatterRegistry()
        registry.seal()
        with pytest.raises(RegistrationClosedError) as exc_info:
            registry.register("upper", _upper)
        assert exc_info.value.handler_kind == "formatter"
        assert exc_info.value.name == "upper"

    def test_sealed_registry_rejects_unregister(self) -> None:
        registry = FunctionRegistry()
        registry.seal()
        with pytest.raises(RegistrationClosedError):
            registry.unregister("bold")

    def test_template_registry_sealed_block(self) -> None:
        """Both registries are sealed inside the block and reopened after."""
        registry = TemplateRegistry()
        with registry.sealed():
            assert registry.formatters.sealed
            assert registry.functions.sealed
        assert not registry.formatters.sealed
        assert not registry.functions.sealed

    def test_sealed_block_is_reentrant(self) -> None:
        registry = TemplateRegistry()
        with registry.sealed():
            with registry.sealed():
                pass
            assert registry.formatters.sealed
        assert not registry.formatters.sealed

    def test_sealed_block_reopens_on_error(self) -> None:
        registry = TemplateRegistry()
        with pytest.raises(RuntimeError):
            with registry.sealed():
                raise RuntimeError("stop")
        assert not registry.functions.sealed


class TestTemplateRegistry:
    """Test the registry facade."""

    def test_shared_formatters(self) -> None:
        """Two facades may share one formatter registry."""
        first = TemplateRegistry()
        second = TemplateRegistry(formatters=first.formatters)
        first.formatters.register("upper", _upper)
        assert second.formatters.resolve("upper") is _upper
        assert second.functions is not first.functions


class TestValidation:
    """Test the validation helpers."""

    def test_validate_name(self) -> None:
        assert validate_name(" upper ", "formatter") == "upper"
        with pytest.raises(ValueError, match="Formatter name cannot be empty"):
            validate_name("", "formatter")

    def test_validate_callable(self) -> None:
        validate_callable(str.upper, "upper")
        with pytest.raises(TypeError, match="must be callable"):
            validate_callable("upper", "upper")
