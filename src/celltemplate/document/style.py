"""Cell style value object."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

__all__ = ["CellStyle", "BORDER_STYLES"]

#: Border styles accepted by ``set_style(border=...)``
BORDER_STYLES: frozenset[str] = frozenset(
    {
        "none",
        "thin",
        "medium",
        "thick",
        "dashed",
        "dotted",
        "double",
        "hair",
        "mediumdashed",
        "dashdot",
        "mediumdashdot",
        "dashdotdot",
        "mediumdashdotdot",
        "slantdashdot",
    }
)


@dataclass(frozen=True, slots=True)
class CellStyle:
    """Visual attributes of a cell.

    Colours are upper-case hex RGB strings (``"FF0000"``) or None for the
    document default.

    Attributes:
        bold: Bold font.
        italic: Italic font.
        underline: Single underline.
        font_color: Font colour.
        background_color: Fill colour.
        horizontal_alignment: "left", "center", "right" or None.
        border: Outside border style (see ``BORDER_STYLES``) or None.
        number_format: Document number format code, e.g. ``"#,##0.00"``.
    """

    bold: bool = False
    italic: bool = False
    underline: bool = False
    font_color: str | None = None
    background_color: str | None = None
    horizontal_alignment: str | None = None
    border: str | None = None
    number_format: str | None = None

    def with_changes(self, **changes: Any) -> CellStyle:
        """Return a copy with ``changes`` applied.

        Raises:
            TypeError: For an unknown style attribute.
        """
        return dataclasses.replace(self, **changes)
