"""Variable resolution.

Resolution order for a variable text (first success wins):

1. exact name in the scope, then in the binding table (case-insensitive)
2. arithmetic, when the text holds a spaced operator (" * ", " / ", " + ", " - ")
3. the global resolver callback, if any
4. ``<name>_Count``: element count of the collection bound to ``<name>``
5. member/index path (``a.b``, ``a[2].b``, ``a["key"]``) walked from its root
6. otherwise unresolved: ``MISSING`` is returned and callers keep the
   original placeholder text
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping, Sized
from typing import Any

from celltemplate.constants import COUNT_SUFFIX
from celltemplate.expressions.arithmetic import (
    DivisionPolicy,
    evaluate_arithmetic,
    find_operator,
)
from celltemplate.expressions.paths import parse_path, walk_path
from celltemplate.expressions.values import MISSING
from celltemplate.logging import get_logger

__all__ = [
    "GlobalResolver",
    "VariableBindings",
    "VariableResolver",
    "resolve",
]

logger = get_logger(__name__)

#: Callback consulted for names absent from the binding table.
#: Returning None means "not found".
GlobalResolver = Callable[[str], Any]


class VariableBindings(MutableMapping[str, Any]):
    """Case-insensitive name to value table.

    Rebinding a name (in any letter case) replaces the previous value and
    spelling, so a key is never duplicated.

    Example:
        ```python
        bindings = VariableBindings({"Name": "john"})
        bindings["NAME"] = "jane"
        bindings["name"]  # 'jane'
        list(bindings)  # ['NAME']
        ```
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, tuple[str, Any]] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, name: str) -> Any:
        return self._entries[name.casefold()][1]

    def __setitem__(self, name: str, value: Any) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("Variable name must be a non-empty string")
        self._entries[name.casefold()] = (name, value)

    def __delitem__(self, name: str) -> None:
        del self._entries[name.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._entries

    def __repr__(self) -> str:
        return f"VariableBindings({dict(self.items())!r})"

    def lookup(self, name: str) -> Any:
        """Return the value bound to ``name`` or ``MISSING``."""
        entry = self._entries.get(name.casefold())
        return MISSING if entry is None else entry[1]


def _element_count(collection: Any) -> Any:
    if collection is None or isinstance(collection, (str, bytes)):
        return MISSING
    if isinstance(collection, Sized):
        return len(collection)
    if isinstance(collection, Iterable):
        return sum(1 for _ in collection)
    return MISSING


class VariableResolver:
    """Resolve variable text against bindings, a scope and a global callback.

    The resolver never mutates the bindings it reads.

    Args:
        bindings: Binding table shared with the template.
        global_resolver: Optional fallback for unknown names. Exceptions it
            raises are logged and treated as "not found".
        division_by_zero: Policy forwarded to arithmetic evaluation.
    """

    def __init__(
        self,
        bindings: VariableBindings,
        global_resolver: GlobalResolver | None = None,
        *,
        division_by_zero: DivisionPolicy = "error",
    ) -> None:
        self.bindings = bindings
        self.global_resolver = global_resolver
        self.division_by_zero = division_by_zero

    def resolve(self, variable_text: str, scope: Mapping[str, Any] | None = None) -> Any:
        """Resolve ``variable_text``.

        Args:
            variable_text: Name, path or arithmetic text.
            scope: Per-iteration bindings layered over the binding table.

        Returns:
            The resolved value (which may be None) or ``MISSING``.
        """
        text = variable_text.strip()
        if not text:
            return MISSING
        layered = VariableBindings(scope) if scope else None

        value = self._lookup(text, layered)
        if value is not MISSING:
            return value

        if find_operator(text) is not None:
            return evaluate_arithmetic(
                text,
                lambda operand: self.resolve(operand, scope),
                division_by_zero=self.division_by_zero,
            )

        value = self._from_global(text)
        if value is not MISSING:
            return value

        if text.endswith(COUNT_SUFFIX) and len(text) > len(COUNT_SUFFIX):
            collection = self._resolve_root(text[: -len(COUNT_SUFFIX)], layered)
            if collection is not MISSING:
                return _element_count(collection)

        if "." in text or "[" in text:
            path = parse_path(text)
            if path is not None:
                root = self._resolve_root(path.root, layered)
                return walk_path(root, path.segments)

        logger.debug("variable_unresolved", variable=text)
        return MISSING

    def _lookup(self, name: str, layered: VariableBindings | None) -> Any:
        if layered is not None:
            value = layered.lookup(name)
            if value is not MISSING:
                return value
        return self.bindings.lookup(name)

    def _from_global(self, name: str) -> Any:
        if self.global_resolver is None:
            return MISSING
        try:
            value = self.global_resolver(name)
        except Exception as e:
            logger.debug("global_resolver_failed", variable=name, error=str(e))
            return MISSING
        return MISSING if value is None else value

    def _resolve_root(self, name: str, layered: VariableBindings | None) -> Any:
        value = self._lookup(name, layered)
        if value is MISSING:
            value = self._from_global(name)
        return value


def resolve(
    variable_text: str,
    bindings: Mapping[str, Any],
    global_resolver: GlobalResolver | None = None,
) -> Any:
    """Resolve ``variable_text`` against a plain mapping.

    Convenience wrapper around :class:`VariableResolver` for one-off lookups.

    Examples:
        >>> resolve("item.Price * item.Qty", {"item": {"Price": 10, "Qty": 3}})
        30
    """
    table = bindings if isinstance(bindings, VariableBindings) else VariableBindings(bindings)
    return VariableResolver(table, global_resolver).resolve(variable_text)
