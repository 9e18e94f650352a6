"""JSON Pointer lookups over plain object graphs.

Paths follow the ``/foo/bar/0`` form: the empty string addresses the whole
document, ``~1`` stands for ``/`` and ``~0`` for ``~`` inside a segment, and
empty segments are legal keys.
"""

from collections.abc import MutableMapping, MutableSequence
from typing import Any, List, Optional, Tuple

_MISSING = object()


class JSONPointer:
    """Resolves and assigns JSON Pointer paths against ``obj``."""

    def __init__(self, obj: Any):
        self.obj = obj

    def get(self, path: str) -> Any:
        """
        Get the value located at ``path``.

        Args:
            path: Pointer in the format "/foo/bar/0"

        Returns:
            The value, or None when any segment is missing
        """
        if path == "":
            return self.obj
        value = self._find(self.obj, self._to_parts(path))
        return None if value is _MISSING else value

    def set(self, path: str, value: Any) -> bool:
        """
        Assign ``value`` at ``path``.

        The empty path replaces ``self.obj`` itself. Returns False when the
        parent of the last segment does not resolve to a container.
        """
        if path == "":
            self.obj = value
            return True

        parts = self._to_parts(path)
        name = parts.pop()
        parent = self._find(self.obj, parts) if parts else self.obj
        if parent is _MISSING or parent is None:
            return False

        if isinstance(parent, MutableMapping):
            parent[name] = value
            return True
        if isinstance(parent, MutableSequence):
            index = _as_index(name)
            if index is None or index > len(parent):
                return False
            if index == len(parent):
                parent.append(value)
            else:
                parent[index] = value
            return True
        return False

    @staticmethod
    def _to_parts(path: str) -> List[str]:
        return [
            part.replace("~1", "/").replace("~0", "~")
            for part in path.split("/")[1:]
        ]

    @staticmethod
    def _find(obj: Any, parts: List[str]) -> Any:
        current = obj
        for part in parts:
            if isinstance(current, MutableMapping):
                current = current.get(part, _MISSING)
            elif isinstance(current, (list, tuple)):
                index = _as_index(part)
                if index is None or index >= len(current):
                    return _MISSING
                current = current[index]
            else:
                return _MISSING
            if current is _MISSING or current is None:
                return current
        return current

    @staticmethod
    def is_pointer(reference: Optional[str]) -> bool:
        return reference is not None and "#" in reference

    @staticmethod
    def fragment_part(reference: str) -> Optional[str]:
        parts = reference.split("#", 1)
        return parts[1] if len(parts) > 1 else None

    @staticmethod
    def remove_fragment(reference: str) -> str:
        return reference.split("#", 1)[0]


def resolve_pointer(root: Any, path: str) -> Any:
    """Shorthand for ``JSONPointer(root).get(path)``."""
    return JSONPointer(root).get(path)


def set_pointer(root: Any, path: str, value: Any) -> Tuple[bool, Any]:
    """
    Assign ``value`` at ``path`` below ``root``.

    Returns:
        Tuple of (success flag, root). The returned root differs from the
        argument only when ``path`` is empty.
    """
    pointer = JSONPointer(root)
    ok = pointer.set(path, value)
    return ok, pointer.obj


def _as_index(part: str) -> Optional[int]:
    if part.isdigit():
        return int(part)
    return None
