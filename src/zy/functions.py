"""Function registry for Zy builtins.

Builtins are registered with metadata for documentation (`zy builtins`) and
installed into a global environment as curried Native values: a builtin
with n parameters takes one argument per application step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from zy.values import Native

if TYPE_CHECKING:
    from zy.environment import Environment
    from zy.evaluator import Evaluator


class FunctionCategory(Enum):
    """Categories for organizing builtins in documentation."""

    MATH = "math"
    COMPARISON = "comparison"
    LOGIC = "logic"
    CONVERSION = "conversion"
    FUNCTION = "function"
    LIST = "list"
    STRING = "string"
    IO = "io"


@dataclass
class FunctionParameter:
    """Definition of a builtin parameter.

    Attributes:
        name: Parameter name
        type: Expected kind ("number", "string", "list", "function", "regex", "any")
        description: Human-readable description
    """

    name: str
    type: str
    description: str


@dataclass
class FunctionDefinition:
    """Complete definition of a builtin.

    Attributes:
        name: Global name the builtin is bound to
        description: Human-readable description
        category: Category for documentation organization
        parameters: Parameters, applied one per call step
        return_type: Kind of the return value
        examples: Example expressions using this builtin
        implementation: Python callable taking one argument per parameter
        needs_evaluator: If True, the implementation also receives the
            evaluator as its first argument (for builtins that call back
            into Zy functions or use session state)
    """

    name: str
    description: str
    category: FunctionCategory
    parameters: list[FunctionParameter]
    return_type: str
    implementation: Callable[..., Any]
    examples: list[str] = field(default_factory=list)
    needs_evaluator: bool = False

    @property
    def signature(self) -> str:
        """Curried call shape, e.g. foldl(initial)(fn)(list)."""
        return self.name + "".join(f"({p.name})" for p in self.parameters)

    def to_native(self) -> Native:
        """Build the curried Native value for this builtin."""
        return Native(self.name, self._step([]))

    def _step(self, collected: list[Any]) -> Callable[[Evaluator, Any, Environment | None], Any]:
        def apply(evaluator: Evaluator, arg: Any, env: Environment | None = None) -> Any:
            args = [*collected, arg]
            if len(args) < len(self.parameters):
                return Native(self.name, self._step(args))
            if self.needs_evaluator:
                return self.implementation(evaluator, *args)
            return self.implementation(*args)

        return apply

    def to_dict(self) -> dict[str, Any]:
        """Export for the documentation listing."""
        return {
            "name": self.name,
            "signature": self.signature,
            "description": self.description,
            "category": self.category.value,
            "parameters": [
                {"name": p.name, "type": p.type, "description": p.description}
                for p in self.parameters
            ],
            "returnType": self.return_type,
            "examples": self.examples,
        }


class FunctionRegistry:
    """Registry for builtin definitions.

    Example:
        FunctionRegistry.register(FunctionDefinition(
            name="len",
            description="Returns the length of a list",
            ...
        ))

        definition = FunctionRegistry.get("len")
        native = definition.to_native()
    """

    _functions: dict[str, FunctionDefinition] = {}

    @classmethod
    def register(cls, func_def: FunctionDefinition) -> None:
        if not func_def.parameters:
            raise ValueError(f"Builtin '{func_def.name}' must take at least one parameter")
        cls._functions[func_def.name] = func_def

    @classmethod
    def get(cls, name: str) -> FunctionDefinition:
        """Get a definition by name.

        Raises:
            ValueError: If the builtin is not registered
        """
        if name not in cls._functions:
            raise ValueError(f"Unknown builtin: {name}")
        return cls._functions[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._functions

    @classmethod
    def list_all(cls) -> list[FunctionDefinition]:
        return list(cls._functions.values())

    @classmethod
    def list_by_category(cls, category: FunctionCategory) -> list[FunctionDefinition]:
        return [f for f in cls._functions.values() if f.category == category]

    @classmethod
    def export_documentation(cls, category: FunctionCategory | None = None) -> dict[str, Any]:
        """Export the registry grouped by category, optionally for one category only."""
        definitions = [
            f for f in cls._functions.values() if category is None or f.category == category
        ]

        by_category: dict[str, list[dict[str, Any]]] = {}
        for func_def in definitions:
            by_category.setdefault(func_def.category.value, []).append(func_def.to_dict())

        return {
            "functions": {f.name: f.to_dict() for f in definitions},
            "byCategory": by_category,
        }

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._functions.clear()
