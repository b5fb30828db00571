"""Selector factories."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING: Any = object()


class _PathSelector:
    __slots__ = ("_path", "_segments", "_default")

    def __init__(self, path: str, default: Any) -> None:
        segments = tuple(path.split(".")) if path else ()
        if not segments or any(not segment for segment in segments):
            raise ValueError(f"Invalid selector path: {path!r}")
        self._path = path
        self._segments = segments
        self._default = default

    def __call__(self, state: Any) -> Any:
        current = state
        for segment in self._segments:
            if current is None:
                return self._default
            if isinstance(current, Mapping):
                current = current.get(segment, _MISSING)
            else:
                current = getattr(current, segment, _MISSING)
            if current is _MISSING:
                return self._default
        return current

    def __repr__(self) -> str:
        return f"select({self._path!r})"


def select(path: str, *, default: Any = None) -> _PathSelector:
    """Build a selector that follows a dotted *path* through a snapshot.

    Each segment is looked up as a key on mappings and as an attribute on
    anything else. A missing segment, or a ``None`` met along the way,
    yields *default*.

    >>> select("user.name")({"user": {"name": "ada"}})
    'ada'
    """
    return _PathSelector(path, default)
