"""Lexical scope frames.

A frame maps names to values and optionally links to a parent frame.
Closures hold frames by reference, so a frame lives as long as anything
refers to it.
"""

from __future__ import annotations

from typing import Any

from zy.errors import EvaluationError

_MISSING = object()


class Environment:
    """One scope frame in the lexical lookup chain."""

    def __init__(self, parent: Environment | None = None):
        self.parent = parent
        self.values: dict[str, Any] = {}

    def child(self) -> Environment:
        """Create a new frame whose parent is this one."""
        return Environment(self)

    def define(self, name: str, value: Any) -> None:
        """Bind name in this frame, shadowing any outer binding."""
        self.values[name] = value

    def assign(self, name: str, value: Any) -> None:
        """Rebind name in the nearest frame that already defines it.

        Raises:
            EvaluationError: If no frame in the chain defines name
        """
        frame: Environment | None = self
        while frame is not None:
            if name in frame.values:
                frame.values[name] = value
                return
            frame = frame.parent
        raise EvaluationError(f"Undefined variable {name}")

    def lookup(self, name: str, default: Any = None) -> Any:
        """Return the value bound to name, or default if it is unbound."""
        frame: Environment | None = self
        while frame is not None:
            value = frame.values.get(name, _MISSING)
            if value is not _MISSING:
                return value
            frame = frame.parent
        return default

    def get(self, name: str) -> Any:
        """Return the value bound to name.

        Raises:
            EvaluationError: If name is not bound anywhere in the chain
        """
        value = self.lookup(name, _MISSING)
        if value is _MISSING:
            raise EvaluationError(f"Undefined variable {name}")
        return value

    def is_defined(self, name: str) -> bool:
        return self.lookup(name, _MISSING) is not _MISSING
