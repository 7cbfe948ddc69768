"""In-memory workbook implementing the document protocols.

Enough of a spreadsheet to run templates without a file format library:

    wb = MemoryWorkbook()
    ws = wb.create_sheet("Invoice")
    ws["A1"] = "Dear {{Name:titlecase}}"
    ws["B2"] = "{{Total:number(2)}}"
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from celltemplate.document.style import BORDER_STYLES, CellStyle

__all__ = [
    "Hyperlink",
    "Picture",
    "MemoryCell",
    "MemoryWorksheet",
    "MemoryWorkbook",
    "a1_to_rowcol",
    "rowcol_to_a1",
]

_A1_PATTERN = re.compile(r"\$?([A-Za-z]{1,3})\$?(\d+)")


def a1_to_rowcol(address: str) -> tuple[int, int]:
    """``"B3"`` -> ``(3, 2)`` (1-based)."""
    match = _A1_PATTERN.fullmatch(address.strip())
    if not match or int(match.group(2)) < 1:
        raise ValueError(f"Invalid cell address: {address!r}")
    column = 0
    for letter in match.group(1).upper():
        column = column * 26 + (ord(letter) - ord("A") + 1)
    return int(match.group(2)), column


def rowcol_to_a1(row: int, column: int) -> str:
    """``(3, 2)`` -> ``"B3"``."""
    if row < 1 or column < 1:
        raise ValueError(f"Invalid row/column: ({row}, {column})")
    letters = ""
    while column:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return f"{letters}{row}"


@dataclass(frozen=True, slots=True)
class Hyperlink:
    """Hyperlink attached to a cell; internal links point inside the workbook."""

    target: str
    internal: bool = False


@dataclass(frozen=True, slots=True)
class Picture:
    """Picture anchored at a cell."""

    image: bytes
    width: int | None = None
    height: int | None = None
    scale: float | None = None


class MemoryCell:
    """Cell of a :class:`MemoryWorksheet`."""

    __slots__ = ("_sheet", "_row", "_column", "_value", "_style", "_formula", "hyperlink", "picture")

    def __init__(self, sheet: MemoryWorksheet, row: int, column: int) -> None:
        self._sheet = sheet
        self._row = row
        self._column = column
        self._value: Any = None
        self._style = CellStyle()
        self._formula: str | None = None
        self.hyperlink: Hyperlink | None = None
        self.picture: Picture | None = None

    @property
    def sheet_name(self) -> str:
        return self._sheet.name

    @property
    def address(self) -> str:
        return rowcol_to_a1(self._row, self._column)

    @property
    def row(self) -> int:
        return self._row

    @property
    def column(self) -> int:
        return self._column

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self.set_value(value)

    @property
    def style(self) -> CellStyle:
        return self._style

    @property
    def formula(self) -> str | None:
        return self._formula

    def set_value(self, value: Any) -> None:
        """Set a literal value; clears any formula."""
        self._value = value
        self._formula = None

    def set_style(self, **changes: Any) -> None:
        border = changes.get("border")
        if border is not None and border.lower() not in BORDER_STYLES:
            raise ValueError(f"Unknown border style: {border!r}")
        self._style = self._style.with_changes(**changes)

    def set_hyperlink(self, target: str, *, internal: bool = False) -> None:
        self.hyperlink = Hyperlink(target=target, internal=internal)

    def set_picture(
        self,
        image: bytes,
        *,
        width: int | None = None,
        height: int | None = None,
        scale: float | None = None,
    ) -> None:
        self.picture = Picture(image=bytes(image), width=width, height=height, scale=scale)

    def set_formula(self, formula: str) -> None:
        """Set a formula; the cached value is cleared."""
        self._formula = formula.removeprefix("=")
        self._value = None

    def __repr__(self) -> str:
        return f"<MemoryCell {self.sheet_name}!{self.address} value={self._value!r}>"


class MemoryWorksheet:
    """Sparse grid of :class:`MemoryCell` keyed by (row, column)."""

    __slots__ = ("_name", "_cells", "visible")

    def __init__(self, name: str, *, visible: bool = True) -> None:
        self._name = name
        self._cells: dict[tuple[int, int], MemoryCell] = {}
        self.visible = visible

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, address: str) -> MemoryCell:
        """``ws["A1"]`` -> cell (created on first access)."""
        return self.cell(address)

    def __setitem__(self, address: str, value: Any) -> None:
        """``ws["A1"] = "{{Name}}"``"""
        self.cell(address).set_value(value)

    def cell(self, address: str) -> MemoryCell:
        row, column = a1_to_rowcol(address)
        return self.cell_at(row, column)

    def cell_at(self, row: int, column: int) -> MemoryCell:
        key = (row, column)
        if key not in self._cells:
            self._cells[key] = MemoryCell(self, row, column)
        return self._cells[key]

    def iter_cells(self) -> Iterator[MemoryCell]:
        """Cells in row-major order."""
        for key in sorted(self._cells):
            yield self._cells[key]

    def values(self) -> dict[str, Any]:
        """Snapshot ``{"A1": value}`` of all non-empty cells."""
        return {
            cell.address: cell.value
            for cell in self.iter_cells()
            if cell.value is not None or cell.formula is not None
        }

    def __repr__(self) -> str:
        return f"<MemoryWorksheet {self._name!r} cells={len(self._cells)}>"


class MemoryWorkbook:
    """Ordered collection of :class:`MemoryWorksheet`."""

    def __init__(self) -> None:
        self._sheets: dict[str, MemoryWorksheet] = {}

    @property
    def worksheets(self) -> list[MemoryWorksheet]:
        return list(self._sheets.values())

    @property
    def sheetnames(self) -> list[str]:
        return list(self._sheets)

    def create_sheet(self, name: str, *, visible: bool = True) -> MemoryWorksheet:
        if name in self._sheets:
            raise ValueError(f"Sheet '{name}' already exists")
        sheet = MemoryWorksheet(name, visible=visible)
        self._sheets[name] = sheet
        return sheet

    def __getitem__(self, name: str) -> MemoryWorksheet:
        if name not in self._sheets:
            raise KeyError(f"Worksheet '{name}' does not exist")
        return self._sheets[name]

    def __contains__(self, name: object) -> bool:
        return name in self._sheets

    def __iter__(self) -> Iterator[MemoryWorksheet]:
        return iter(self.worksheets)

    def __repr__(self) -> str:
        return f"<MemoryWorkbook sheets={self.sheetnames}>"
