"""Registry protocol and handler type aliases.

Formatters are pure ``(value, parameters) -> value`` callables. Functions are
``(cell, value, parameters) -> None`` callables that set the cell's value
themselves and may change its style, hyperlink or picture.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from celltemplate.document.protocols import CellHandle

T = TypeVar("T")

FormatterType: TypeAlias = Callable[[Any, list[str]], Any]

FunctionType: TypeAlias = Callable[["CellHandle", Any, list[str]], None]


@runtime_checkable
class FormatterObject(Protocol):
    """Object-style formatter, registered in place of a plain callable."""

    def format(self, value: Any, parameters: list[str]) -> Any: ...


@runtime_checkable
class FunctionObject(Protocol):
    """Object-style function, registered in place of a plain callable."""

    def process(self, cell: CellHandle, value: Any, parameters: list[str]) -> None: ...


class Registry(Protocol[T]):
    """Interface shared by the formatter and function registries.

    Names are case-insensitive and the last registration of a name wins.
    """

    def register(
        self, name: str, handler: T | None = None
    ) -> T | Callable[[T], T]: ...

    def resolve(self, name: str) -> T | None: ...

    def is_registered(self, name: str) -> bool: ...

    def list_names(self) -> list[str]: ...
