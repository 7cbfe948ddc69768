"""Document model protocols and the in-memory reference workbook."""

from __future__ import annotations

from celltemplate.document.memory import (
    Hyperlink,
    MemoryCell,
    MemoryWorkbook,
    MemoryWorksheet,
    Picture,
    a1_to_rowcol,
    rowcol_to_a1,
)
from celltemplate.document.protocols import (
    CellHandle,
    Workbook,
    Worksheet,
    cell_key,
    cell_text,
)
from celltemplate.document.style import BORDER_STYLES, CellStyle

__all__ = [
    "BORDER_STYLES",
    "CellHandle",
    "CellStyle",
    "Hyperlink",
    "MemoryCell",
    "MemoryWorkbook",
    "MemoryWorksheet",
    "Picture",
    "Workbook",
    "Worksheet",
    "a1_to_rowcol",
    "cell_key",
    "cell_text",
    "rowcol_to_a1",
]
