from __future__ import annotations

from celltemplate.exceptions.base import CellTemplateError


class RegistrationClosedError(CellTemplateError):
    """Raised when a handler is registered while a generation run is active.

    Registries are read-only for the duration of ``CellTemplate.generate()``.
    Register formatters and functions before generating.

    Attributes:
        message: Human-readable error message.
        handler_kind: "formatter" or "function".
        name: Name the caller tried to register.
    """

    def __init__(self, handler_kind: str, name: str) -> None:
        self.handler_kind = handler_kind
        self.name = name
        super().__init__(
            f"Cannot register {handler_kind} '{name}' while a generation run "
            "is in progress"
        )
