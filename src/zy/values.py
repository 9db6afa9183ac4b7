"""Runtime value model for Zy.

Values are plain host objects, classified by kind_of():

    Number  -> float (never bool)
    String  -> str
    Bool    -> bool
    List    -> list of values, never mutated once built
    Function-> FunctionValue (Closure or Native)
    Nil     -> None
    Regex   -> compiled re.Pattern

Builtins never cast blindly: they go through the expect_* helpers, which
raise an EvaluationError naming the expected and actual kinds.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from zy.errors import EvaluationError

if TYPE_CHECKING:
    from zy.environment import Environment
    from zy.evaluator import Evaluator
    from zy.parser import ASTNode


NIL_MARKER = "()"


class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"
    LIST = "list"
    FUNCTION = "function"
    NIL = "nil"
    REGEX = "regex"


class FunctionValue:
    """A callable Zy value. Every call applies exactly one argument."""

    name: str | None = None

    def call(self, evaluator: Evaluator, arg: Any, env: Environment | None = None) -> Any:
        raise NotImplementedError


class Closure(FunctionValue):
    """User function: remaining parameter names, body, and defining environment.

    Applying a closure binds the first remaining parameter in a new child
    frame of the captured environment. With parameters left over the result
    is another closure over that frame; otherwise the body is evaluated.
    A closure with no parameters is a thunk and ignores its argument.
    """

    def __init__(
        self,
        params: list[str],
        body: ASTNode,
        env: Environment,
        name: str | None = None,
    ):
        self.params = params
        self.body = body
        self.env = env
        self.name = name

    def call(self, evaluator: Evaluator, arg: Any, env: Environment | None = None) -> Any:
        frame = self.env.child()
        if not self.params:
            return evaluator.evaluate(self.body, frame)

        frame.define(self.params[0], arg)
        if len(self.params) == 1:
            return evaluator.evaluate(self.body, frame)
        return Closure(self.params[1:], self.body, frame, self.name)

    def __repr__(self) -> str:
        return f"Closure(name={self.name!r}, params={self.params!r})"


class Native(FunctionValue):
    """Host function taking (evaluator, arg, env)."""

    def __init__(
        self,
        name: str,
        fn: Callable[[Evaluator, Any, Environment | None], Any],
    ):
        self.name = name
        self.fn = fn

    def call(self, evaluator: Evaluator, arg: Any, env: Environment | None = None) -> Any:
        return self.fn(evaluator, arg, env)

    def __repr__(self) -> str:
        return f"Native({self.name!r})"


def kind_of(value: Any) -> ValueKind:
    """Classify a host object as a Zy value kind."""
    if value is None:
        return ValueKind.NIL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.LIST
    if isinstance(value, FunctionValue):
        return ValueKind.FUNCTION
    if isinstance(value, re.Pattern):
        return ValueKind.REGEX
    raise EvaluationError(f"Unsupported host value of type {type(value).__name__}")


def render(value: Any) -> str:
    """Textual representation used by toStr, print, concat and the REPL."""
    kind = kind_of(value)

    if kind is ValueKind.NIL:
        return NIL_MARKER
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if float(value).is_integer():
            return str(int(value))
        return repr(float(value))
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.LIST:
        return "[" + ", ".join(render(item) for item in value) + "]"
    if kind is ValueKind.FUNCTION:
        return f"<function {value.name}>" if value.name else "<function>"
    return f"<regex {value.pattern}>"


def truthy(value: Any) -> bool:
    """Nil and false are falsy; every other value is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality. Values of different kinds are never equal."""
    kind = kind_of(left)
    if kind is not kind_of(right):
        return False

    if kind is ValueKind.LIST:
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if kind is ValueKind.NUMBER:
        return float(left) == float(right)
    if kind in (ValueKind.FUNCTION, ValueKind.REGEX):
        return left is right
    return left == right


# -----------------------------------------------------------------------------
# Checked casts
# -----------------------------------------------------------------------------


def _mismatch(function: str, expected: ValueKind, value: Any) -> EvaluationError:
    return EvaluationError(
        f"{function} expected a {expected.value} but got {kind_of(value).value}"
    )


def expect_number(value: Any, function: str) -> float:
    if kind_of(value) is not ValueKind.NUMBER:
        raise _mismatch(function, ValueKind.NUMBER, value)
    return float(value)


def expect_index(value: Any, function: str) -> int:
    number = expect_number(value, function)
    if not number.is_integer():
        raise EvaluationError(f"{function} expected a whole number but got {render(number)}")
    return int(number)


def expect_string(value: Any, function: str) -> str:
    if kind_of(value) is not ValueKind.STRING:
        raise _mismatch(function, ValueKind.STRING, value)
    return value


def expect_list(value: Any, function: str) -> list[Any]:
    if kind_of(value) is not ValueKind.LIST:
        raise _mismatch(function, ValueKind.LIST, value)
    return value


def expect_function(value: Any, function: str) -> FunctionValue:
    if kind_of(value) is not ValueKind.FUNCTION:
        raise _mismatch(function, ValueKind.FUNCTION, value)
    return value


def expect_regex(value: Any, function: str) -> re.Pattern[str]:
    if kind_of(value) is not ValueKind.REGEX:
        raise _mismatch(function, ValueKind.REGEX, value)
    return value
