"""Error records and the result of a generation run."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from celltemplate.document.protocols import Workbook

SYNTAX_ERROR_PREFIX = "Syntax error"


@dataclass(frozen=True, slots=True)
class TemplateError:
    """A problem recorded during generation instead of being raised.

    Attributes:
        message: Human-readable description.
        sheet: Worksheet name, if tied to a cell.
        address: Cell address (``A1``), if tied to a cell.
        expression: Expression text involved, if any.
    """

    message: str
    sheet: str | None = None
    address: str | None = None
    expression: str | None = None

    def __post_init__(self) -> None:
        if not self.message:
            raise ValueError("TemplateError needs a message")

    @property
    def cell_key(self) -> str | None:
        """``Sheet!A1`` or None when not tied to a cell."""
        if self.sheet is None or self.address is None:
            return None
        return f"{self.sheet}!{self.address}"

    @property
    def is_syntax_error(self) -> bool:
        return self.message.startswith(SYNTAX_ERROR_PREFIX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "sheet": self.sheet,
            "address": self.address,
            "expression": self.expression,
        }

    def __str__(self) -> str:
        location = self.cell_key
        return f"{location}: {self.message}" if location else self.message


class TemplateErrors:
    """Ordered, append-only collection of :class:`TemplateError`."""

    def __init__(self, errors: Iterable[TemplateError] = ()) -> None:
        self._errors: list[TemplateError] = list(errors)

    def add(self, error: TemplateError) -> None:
        self._errors.append(error)

    def extend(self, errors: Iterable[TemplateError]) -> None:
        self._errors.extend(errors)

    def for_cell(self, key: str) -> list[TemplateError]:
        """Errors recorded for ``Sheet!A1``."""
        return [error for error in self._errors if error.cell_key == key]

    def clear(self) -> None:
        self._errors.clear()

    def __iter__(self) -> Iterator[TemplateError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __repr__(self) -> str:
        return f"TemplateErrors({self._errors!r})"


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """Outcome of ``CellTemplate.generate()``.

    The workbook is always returned, even when errors occurred; it holds
    whatever output was produced.

    Attributes:
        workbook: The rewritten workbook.
        errors: Errors recorded during the run, in the order they occurred.
    """

    workbook: Workbook
    errors: tuple[TemplateError, ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def succeeded(self) -> bool:
        return not self.errors
