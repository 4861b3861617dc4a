"""
Binding context lookup: dotted-path resolution and loop item scopes.
"""
from collections.abc import Mapping, Sequence
from typing import Any, Optional


class _Absent:
    """Marker for a path that does not resolve to anything."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def _step(value: Any, segment: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(segment, ABSENT)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if segment.isdigit():
            index = int(segment)
            if index < len(value):
                return value[index]
    return ABSENT


def resolve(context: Any, dotted_path: str) -> Any:
    """
    Resolve ``a.b.c`` against *context*.

    Returns ABSENT when any step is missing or lands on None; never raises.
    """
    if context is None or not isinstance(dotted_path, str):
        return ABSENT
    value = context
    for segment in dotted_path.split("."):
        if value is None or value is ABSENT:
            return ABSENT
        value = _step(value, segment)
    return value


def is_missing(value: Any) -> bool:
    """True for ABSENT and None, the two values that trigger a literal default."""
    return value is ABSENT or value is None


class Scope:
    """Root scope wrapping the caller's binding context."""

    def __init__(self, bindings: Optional[Mapping] = None):
        self.bindings = bindings if bindings is not None else {}

    @property
    def parent(self) -> Optional["Scope"]:
        return None

    def lookup(self, path: str) -> Any:
        return resolve(self.bindings, path)

    def child(self, item: Any, index: int) -> "LoopScope":
        return LoopScope(self, item, index)


class LoopScope(Scope):
    """
    Per-iteration scope of an ``{{#each}}`` block.

    ``this``, ``@index``, ``@order`` and the item's own paths are answered
    here; anything else falls through to the enclosing scope.
    """

    def __init__(self, parent: Scope, item: Any, index: int):
        super().__init__(parent.bindings)
        self._parent = parent
        self.item = item
        self.index = index

    @property
    def parent(self) -> Scope:
        return self._parent

    def lookup(self, path: str) -> Any:
        if path == "this":
            return self.item
        if path == "@index":
            return self.index
        if path == "@order":
            return self.index + 1
        if path.startswith("this."):
            return resolve(self.item, path[5:])
        # A key present on the item wins even when its value is None
        value = resolve(self.item, path)
        if value is not ABSENT:
            return value
        return self._parent.lookup(path)
