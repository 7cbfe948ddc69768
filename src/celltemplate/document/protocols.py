"""Document model seen by the template engine.

The engine never reads or writes files. A host adapts its workbook library
to these protocols; :mod:`celltemplate.document.memory` is the in-memory
implementation used by tests and examples.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol, runtime_checkable

from celltemplate.document.style import CellStyle


@runtime_checkable
class CellHandle(Protocol):
    """A single cell: text in, value/style/metadata out."""

    @property
    def sheet_name(self) -> str: ...

    @property
    def address(self) -> str: ...

    @property
    def value(self) -> Any: ...

    @property
    def style(self) -> CellStyle: ...

    @property
    def formula(self) -> str | None: ...

    def set_value(self, value: Any) -> None: ...

    def set_style(self, **changes: Any) -> None: ...

    def set_hyperlink(self, target: str, *, internal: bool = False) -> None: ...

    def set_picture(
        self,
        image: bytes,
        *,
        width: int | None = None,
        height: int | None = None,
        scale: float | None = None,
    ) -> None: ...

    def set_formula(self, formula: str) -> None: ...


@runtime_checkable
class Worksheet(Protocol):
    """A worksheet whose cells are visited in row-major order."""

    @property
    def name(self) -> str: ...

    @property
    def visible(self) -> bool: ...

    def iter_cells(self) -> Iterator[CellHandle]: ...

    def cell(self, address: str) -> CellHandle: ...


@runtime_checkable
class Workbook(Protocol):
    """An ordered collection of worksheets."""

    @property
    def worksheets(self) -> Sequence[Worksheet]: ...


def cell_key(cell: CellHandle) -> str:
    """Stable identity of a cell across passes: ``Sheet!A1``."""
    return f"{cell.sheet_name}!{cell.address}"


def cell_text(cell: CellHandle) -> str:
    """The cell's value when it is text, otherwise an empty string."""
    value = cell.value
    return value if isinstance(value, str) else ""
