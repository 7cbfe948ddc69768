"""Property and index path walking.

A variable such as ``Order.Lines[2].Price`` is parsed with a small Lark
grammar (path.lark) into a root name and a tuple of segments. Member lookup
goes through :func:`get_member`, a ``functools.singledispatch`` function with
one implementation per supported data shape (mapping, sequence, plain object),
so traversal never reaches into private attributes or methods.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping, Sequence, Sized
from dataclasses import dataclass
from functools import lru_cache, singledispatch
from pathlib import Path
from typing import Any

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

from celltemplate.constants import COUNT_MEMBER
from celltemplate.expressions.values import MISSING
from celltemplate.logging import get_logger

__all__ = [
    "MemberSegment",
    "IndexSegment",
    "KeySegment",
    "PathSegment",
    "VariablePath",
    "get_member",
    "parse_path",
    "walk_path",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MemberSegment:
    """``.name`` accessor."""

    name: str

    def apply(self, target: Any) -> Any:
        return get_member(target, self.name)


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """``[n]`` accessor on an ordered sequence."""

    index: int

    def apply(self, target: Any) -> Any:
        if isinstance(target, (str, bytes)) or not isinstance(target, Sequence):
            return MISSING
        if not 0 <= self.index < len(target):
            return MISSING
        return target[self.index]


@dataclass(frozen=True, slots=True)
class KeySegment:
    """``["key"]`` accessor on a mapping."""

    key: str

    def apply(self, target: Any) -> Any:
        if not isinstance(target, Mapping):
            return MISSING
        return target.get(self.key, MISSING)


PathSegment = MemberSegment | IndexSegment | KeySegment


@dataclass(frozen=True, slots=True)
class VariablePath:
    """Parsed variable path.

    Attributes:
        root: Name resolved against the binding table.
        segments: Accessors applied to the root value, left to right.
    """

    root: str
    segments: tuple[PathSegment, ...] = ()


# =============================================================================
# Member lookup
# =============================================================================


@singledispatch
def get_member(target: Any, name: str) -> Any:
    """Return the public attribute ``name`` of ``target`` or ``MISSING``.

    Properties are evaluated; a property that raises is not a member.
    Methods and underscore-prefixed names are not considered members.
    """
    if target is None or name.startswith("_"):
        return MISSING
    try:
        value = getattr(target, name, MISSING)
    except Exception as e:
        logger.debug("member_read_failed", member=name, error=str(e))
        return MISSING
    if inspect.ismethod(value) or inspect.isbuiltin(value):
        return MISSING
    return value


@get_member.register
def _(target: Mapping, name: str) -> Any:  # type: ignore[type-arg]
    if name in target:
        return target[name]
    if name == COUNT_MEMBER:
        return len(target)
    return MISSING


@get_member.register
def _(target: str, name: str) -> Any:
    return MISSING


@get_member.register
def _(target: Sequence, name: str) -> Any:  # type: ignore[type-arg]
    if name == COUNT_MEMBER:
        return len(target)
    return MISSING


@get_member.register
def _(target: frozenset, name: str) -> Any:  # type: ignore[type-arg]
    return _set_member(target, name)


@get_member.register
def _(target: set, name: str) -> Any:  # type: ignore[type-arg]
    return _set_member(target, name)


def _set_member(target: Sized, name: str) -> Any:
    if name == COUNT_MEMBER:
        return len(target)
    return MISSING


# =============================================================================
# Parsing
# =============================================================================

_GRAMMAR = (Path(__file__).parent / "path.lark").read_text()

_parser = Lark(_GRAMMAR, parser="lalr", start="start")


class _PathTransformer(Transformer[Token, Any]):
    """Transform the path parse tree into a VariablePath."""

    def start(self, items: list[Any]) -> VariablePath:
        return VariablePath(root=str(items[0]), segments=tuple(items[1:]))

    def member(self, items: list[Token]) -> MemberSegment:
        return MemberSegment(str(items[0]))

    def index(self, items: list[Token]) -> IndexSegment:
        return IndexSegment(int(items[0]))

    def key(self, items: list[Token]) -> KeySegment:
        # Strip the surrounding quotes
        return KeySegment(str(items[0])[1:-1])


@lru_cache(maxsize=1024)
def parse_path(text: str) -> VariablePath | None:
    """Parse ``text`` into a VariablePath, or None if it is not a path."""
    try:
        tree = _parser.parse(text)
    except LarkError:
        return None
    path: VariablePath = _PathTransformer().transform(tree)
    return path


def walk_path(root: Any, segments: tuple[PathSegment, ...]) -> Any:
    """Apply ``segments`` to ``root``.

    Returns ``MISSING`` as soon as a segment is absent, out of range, fails
    while reading or is applied to ``None``. A ``None`` reached at the last segment is a value.
    """
    current = root
    for segment in segments:
        if current is None or current is MISSING:
            return MISSING
        try:
            current = segment.apply(current)
        except Exception as e:
            logger.debug("path_segment_failed", segment=repr(segment), error=str(e))
            return MISSING
    return current
