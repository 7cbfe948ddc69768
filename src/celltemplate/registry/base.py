"""Case-insensitive handler registry shared by formatters and functions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from celltemplate.exceptions import RegistrationClosedError
from celltemplate.logging import get_logger
from celltemplate.registry.validation import validate_callable, validate_name

logger = get_logger(__name__)

H = TypeVar("H", bound=Callable[..., Any])


class HandlerRegistry(Generic[H]):
    """Name to handler table.

    Lookups ignore letter case; registering an existing name replaces the
    previous handler. While sealed (during a generation run) registration
    raises :class:`RegistrationClosedError`.

    Subclasses set ``handler_kind`` and may override :meth:`_coerce` to accept
    handler objects besides plain callables.
    """

    handler_kind: str = "handler"

    def __init__(self) -> None:
        self._handlers: dict[str, tuple[str, H]] = {}
        self._sealed = False

    def register(
        self,
        name: str,
        handler: Any = None,
    ) -> Any:
        """Register a handler, directly or as a decorator.

        Args:
            name: Name used in expressions (case-insensitive).
            handler: Handler to register (None when used as a decorator).

        Returns:
            The handler when called directly, or a decorator.

        Raises:
            ValueError: If the name is empty.
            TypeError: If the handler is not usable.
            RegistrationClosedError: If the registry is sealed.

        Example:
            ```python
            @registry.register("shout")
            def shout(value, parameters):
                return f"{value}!"

            registry.register("whisper", lambda value, parameters: str(value).lower())
            ```
        """
        if handler is None:

            def decorator(component: Any) -> Any:
                self._register_impl(name, component)
                return component

            return decorator

        self._register_impl(name, handler)
        return handler

    def _register_impl(self, name: str, handler: Any) -> None:
        key_name = validate_name(name, self.handler_kind)
        if self._sealed:
            raise RegistrationClosedError(self.handler_kind, key_name)

        resolved = self._coerce(handler, key_name)
        key = key_name.casefold()
        if key in self._handlers:
            logger.debug(
                f"{self.handler_kind}_replaced",
                name=key_name,
                previous=self._handlers[key][0],
            )
        self._handlers[key] = (key_name, resolved)
        logger.debug(f"{self.handler_kind}_registered", name=key_name)

    def _coerce(self, handler: Any, name: str) -> H:
        validate_callable(handler, name)
        coerced: H = handler
        return coerced

    def resolve(self, name: str) -> H | None:
        """Return the handler registered under ``name``, or None."""
        if not name:
            return None
        entry = self._handlers.get(name.casefold())
        return None if entry is None else entry[1]

    def is_registered(self, name: str) -> bool:
        """Check whether ``name`` has a handler."""
        return bool(name) and name.casefold() in self._handlers

    def unregister(self, name: str) -> bool:
        """Remove ``name``; returns whether it was registered."""
        if self._sealed:
            raise RegistrationClosedError(self.handler_kind, name)
        return self._handlers.pop(name.casefold(), None) is not None

    def list_names(self) -> list[str]:
        """Sorted list of registered names, in their registered spelling."""
        return sorted(name for name, _ in self._handlers.values())

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def unseal(self) -> None:
        self._sealed = False

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_registered(name)

    def __len__(self) -> int:
        return len(self._handlers)
