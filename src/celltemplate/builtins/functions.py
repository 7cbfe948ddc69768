"""Built-in functions.

A function receives the target cell, the resolved value and the parameter
list. It owns the cell: it writes the value itself and applies any style,
hyperlink or picture.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from celltemplate.document.protocols import CellHandle
from celltemplate.expressions.values import display_text
from celltemplate.logging import get_logger

__all__ = [
    "NAMED_COLORS",
    "HYPERLINK_COLOR",
    "parse_color",
    "bold",
    "italic",
    "color",
    "background",
    "center",
    "border",
    "number_format",
    "link",
    "image",
    "BUILTIN_FUNCTIONS",
]

logger = get_logger(__name__)

NAMED_COLORS: dict[str, str] = {
    "black": "000000",
    "white": "FFFFFF",
    "red": "FF0000",
    "green": "008000",
    "lime": "00FF00",
    "blue": "0000FF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "purple": "800080",
    "gray": "808080",
    "grey": "808080",
    "lightgray": "D3D3D3",
    "darkgray": "A9A9A9",
    "navy": "000080",
    "teal": "008080",
    "maroon": "800000",
    "olive": "808000",
    "silver": "C0C0C0",
    "cyan": "00FFFF",
    "magenta": "FF00FF",
    "pink": "FFC0CB",
    "brown": "A52A2A",
    "gold": "FFD700",
    "lightblue": "ADD8E6",
    "lightgreen": "90EE90",
    "lightyellow": "FFFFE0",
}

#: Default hyperlink font colour of spreadsheet themes
HYPERLINK_COLOR = "0563C1"

DEFAULT_COLOR = NAMED_COLORS["black"]

_HEX_COLOR = re.compile(r"#?([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})")


def parse_color(text: str) -> str | None:
    """Colour name or hex code -> upper-case ``RRGGBB``; None if neither."""
    candidate = text.strip()
    named = NAMED_COLORS.get(candidate.lower().replace(" ", ""))
    if named is not None:
        return named
    match = _HEX_COLOR.fullmatch(candidate)
    if match is None:
        return None
    digits = match.group(1).upper()
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return digits


def bold(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    cell.set_style(bold=True)
    cell.set_value(value)


def italic(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    cell.set_style(italic=True)
    cell.set_value(value)


def color(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Font colour; unrecognised colours fall back to black."""
    if parameters:
        cell.set_style(font_color=parse_color(parameters[0]) or DEFAULT_COLOR)
    cell.set_value(value)


def background(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Fill colour; an unrecognised colour leaves the fill unchanged."""
    if parameters:
        fill = parse_color(parameters[0])
        if fill is not None:
            cell.set_style(background_color=fill)
    cell.set_value(value)


def center(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    cell.set_style(horizontal_alignment="center")
    cell.set_value(value)


def border(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Outside border; ``style`` defaults to ``thin``."""
    style = parameters[0].strip().lower() if parameters else "thin"
    cell.set_style(border=style)
    cell.set_value(value)


def number_format(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Keep the value typed and let the document format it.

    ``{{Total|format("#,##0.00")}}``
    """
    if parameters:
        cell.set_style(number_format=parameters[0])
    cell.set_value(value)


def link(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Turn the cell into a hyperlink to ``value``.

    The first parameter is the display text (default: the target). Targets
    starting with ``#`` or containing ``!`` point inside the workbook;
    anything else is an external URL and gets ``http://`` when it has no
    scheme.
    """
    if value is None:
        return

    target = display_text(value)
    text = parameters[0] if parameters else target
    cell.set_value(text)

    internal = target.startswith("#") or "!" in target
    if not internal and not target.startswith(("http://", "https://", "mailto:")):
        target = f"http://{target}"
    cell.set_hyperlink(target, internal=internal)
    cell.set_style(underline=True, font_color=HYPERLINK_COLOR)


def _picture_options(parameters: list[str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for parameter in parameters:
        name, separator, raw = parameter.partition("=")
        if not separator:
            continue
        try:
            size = int(raw.strip())
        except ValueError:
            continue
        key = name.strip().lower()
        if key in ("width", "height"):
            options[key] = size
        elif key == "scale":
            options["scale"] = size / 100
    return options


def image(cell: CellHandle, value: Any, parameters: list[str]) -> None:
    """Anchor a picture at the cell and clear its text.

    ``value`` is image bytes or the path of an existing file. Parameters are
    ``width=<px>``, ``height=<px>`` and ``scale=<percent>``.
    """
    if value is None:
        return

    try:
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        else:
            path = Path(str(value))
            if not path.is_file():
                logger.debug("image_not_found", path=str(value))
                cell.set_value("Invalid image path")
                return
            data = path.read_bytes()

        cell.set_picture(data, **_picture_options(parameters))
        cell.set_value("")
    except (OSError, ValueError) as e:
        cell.set_value(f"Error: {e}")


BUILTIN_FUNCTIONS = {
    "bold": bold,
    "italic": italic,
    "color": color,
    "background": background,
    "center": center,
    "border": border,
    "format": number_format,
    "link": link,
    "image": image,
}
