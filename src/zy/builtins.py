"""Built-in functions for Zy.

This module registers every builtin with the FunctionRegistry and installs
them into a global environment. Operators resolve to these names at run
time (`+` is `add`, `.` is `compose`, ...), so user code that rebinds a
name also rebinds its operator.

Categories:
- Math: add, sub, mul, div, mod, neg
- Comparison: eq, neq, lt, gt, lte, gte
- Logic: and, or, not, toBool (operands already evaluated, no short-circuit)
- Conversion: toNum, toStr
- Function: compose, global
- List: nth, head, tail, len, map, foldl, foldr, filter, reduce, zip, zipWith,
  plus, minus, drop, take, slice, concat, reverse, sort, range
- String: regex, match, replace, split, join
- IO: print, read
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any

import click

from zy.errors import EvaluationError
from zy.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)
from zy.values import (
    ValueKind,
    expect_function,
    expect_index,
    expect_list,
    expect_number,
    expect_regex,
    expect_string,
    kind_of,
    render,
    truthy,
    values_equal,
)

if TYPE_CHECKING:
    from zy.environment import Environment
    from zy.evaluator import Evaluator

logger = logging.getLogger(__name__)


def register_all_builtins() -> None:
    """Register all built-in functions with the FunctionRegistry."""
    _register_math_functions()
    _register_comparison_functions()
    _register_logic_functions()
    _register_conversion_functions()
    _register_function_functions()
    _register_list_functions()
    _register_string_functions()
    _register_io_functions()


def install_builtins(env: Environment) -> None:
    """Bind every registered builtin in env as a curried Native."""
    if not FunctionRegistry.list_all():
        register_all_builtins()

    for func_def in FunctionRegistry.list_all():
        env.define(func_def.name, func_def.to_native())

    logger.debug("Installed %d builtins", len(FunctionRegistry.list_all()))


def _param(name: str, type_: str, description: str) -> FunctionParameter:
    return FunctionParameter(name, type_, description)


# -----------------------------------------------------------------------------
# Math Functions
# -----------------------------------------------------------------------------


def _add(left: Any, right: Any) -> float:
    return expect_number(left, "add") + expect_number(right, "add")


def _sub(left: Any, right: Any) -> float:
    return expect_number(left, "sub") - expect_number(right, "sub")


def _mul(left: Any, right: Any) -> float:
    return expect_number(left, "mul") * expect_number(right, "mul")


def _div(left: Any, right: Any) -> float:
    """IEEE 754 division: x / 0 is signed infinity, 0 / 0 is NaN."""
    dividend = expect_number(left, "div")
    divisor = expect_number(right, "div")
    if divisor == 0:
        if dividend == 0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)
    return dividend / divisor


def _mod(left: Any, right: Any) -> float:
    """Remainder with the sign of the dividend. NaN when divisor is 0 or dividend infinite."""
    dividend = expect_number(left, "mod")
    divisor = expect_number(right, "mod")
    if divisor == 0 or math.isinf(dividend):
        return math.nan
    return math.fmod(dividend, divisor)


def _neg(value: Any) -> float:
    return -expect_number(value, "neg")


def _register_math_functions() -> None:
    numbers = [
        _param("a", "number", "Left operand"),
        _param("b", "number", "Right operand"),
    ]

    for name, description, implementation, example in [
        ("add", "Adds two numbers (operator +)", _add, "1 + 2"),
        ("sub", "Subtracts b from a (operator -)", _sub, "sub(10)(4)"),
        ("mul", "Multiplies two numbers (operator *)", _mul, "mul(3, 4)"),
        ("div", "Divides a by b (operator /)", _div, "div(9, 3)"),
        ("mod", "Remainder of a divided by b, with the sign of a", _mod, "mod(7, 3)"),
    ]:
        FunctionRegistry.register(
            FunctionDefinition(
                name=name,
                description=description,
                category=FunctionCategory.MATH,
                parameters=numbers,
                return_type="number",
                examples=[example],
                implementation=implementation,
            )
        )

    FunctionRegistry.register(
        FunctionDefinition(
            name="neg",
            description="Negates a number (unary operator -)",
            category=FunctionCategory.MATH,
            parameters=[_param("a", "number", "The number to negate")],
            return_type="number",
            examples=["-x", "neg(3)"],
            implementation=_neg,
        )
    )


# -----------------------------------------------------------------------------
# Comparison Functions
# -----------------------------------------------------------------------------


def _eq(left: Any, right: Any) -> bool:
    return values_equal(left, right)


def _neq(left: Any, right: Any) -> bool:
    return not values_equal(left, right)


def _lt(left: Any, right: Any) -> bool:
    return expect_number(left, "lt") < expect_number(right, "lt")


def _gt(left: Any, right: Any) -> bool:
    return expect_number(left, "gt") > expect_number(right, "gt")


def _lte(left: Any, right: Any) -> bool:
    return expect_number(left, "lte") <= expect_number(right, "lte")


def _gte(left: Any, right: Any) -> bool:
    return expect_number(left, "gte") >= expect_number(right, "gte")


def _register_comparison_functions() -> None:
    any_pair = [
        _param("a", "any", "Left operand"),
        _param("b", "any", "Right operand"),
    ]
    numbers = [
        _param("a", "number", "Left operand"),
        _param("b", "number", "Right operand"),
    ]

    for name, description, parameters, implementation, example in [
        ("eq", "Structural equality (operator =)", any_pair, _eq, "[1, 2] = [1, 2]"),
        ("neq", "Structural inequality (operator !=)", any_pair, _neq, 'x != "done"'),
        ("lt", "a < b for numbers", numbers, _lt, "1 < 2"),
        ("gt", "a > b for numbers", numbers, _gt, "2 > 1"),
        ("lte", "a <= b for numbers", numbers, _lte, "n <= 0"),
        ("gte", "a >= b for numbers", numbers, _gte, "n >= 10"),
    ]:
        FunctionRegistry.register(
            FunctionDefinition(
                name=name,
                description=description,
                category=FunctionCategory.COMPARISON,
                parameters=parameters,
                return_type="bool",
                examples=[example],
                implementation=implementation,
            )
        )


# -----------------------------------------------------------------------------
# Logic Functions
# -----------------------------------------------------------------------------


def _and(left: Any, right: Any) -> bool:
    return truthy(left) and truthy(right)


def _or(left: Any, right: Any) -> bool:
    return truthy(left) or truthy(right)


def _not(value: Any) -> bool:
    return not truthy(value)


def _register_logic_functions() -> None:
    pair = [
        _param("a", "any", "Left operand"),
        _param("b", "any", "Right operand"),
    ]

    FunctionRegistry.register(
        FunctionDefinition(
            name="and",
            description="True if both values are truthy (operator &&, not short-circuiting)",
            category=FunctionCategory.LOGIC,
            parameters=pair,
            return_type="bool",
            examples=["ready && count > 0"],
            implementation=_and,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="or",
            description="True if either value is truthy (operator ||, not short-circuiting)",
            category=FunctionCategory.LOGIC,
            parameters=pair,
            return_type="bool",
            examples=["done || failed"],
            implementation=_or,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="not",
            description="Negates the truthiness of a value (operator !)",
            category=FunctionCategory.LOGIC,
            parameters=[_param("a", "any", "The value to negate")],
            return_type="bool",
            examples=["!done"],
            implementation=_not,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="toBool",
            description="False for () and false, true for everything else",
            category=FunctionCategory.LOGIC,
            parameters=[_param("value", "any", "The value to test")],
            return_type="bool",
            examples=["toBool(0)"],
            implementation=truthy,
        )
    )


# -----------------------------------------------------------------------------
# Conversion Functions
# -----------------------------------------------------------------------------


def _to_num(value: Any) -> float:
    kind = kind_of(value)
    if kind is ValueKind.NUMBER:
        return float(value)

    text = expect_string(value, "toNum")
    try:
        return float(text.strip())
    except ValueError:
        raise EvaluationError(f'toNum cannot convert "{text}" to a number')


def _register_conversion_functions() -> None:
    FunctionRegistry.register(
        FunctionDefinition(
            name="toNum",
            description="Parses a string as a number",
            category=FunctionCategory.CONVERSION,
            parameters=[_param("value", "string", "Text to parse, or a number")],
            return_type="number",
            examples=['toNum("42") + 1', "read() . toNum"],
            implementation=_to_num,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="toStr",
            description="Renders any value as text",
            category=FunctionCategory.CONVERSION,
            parameters=[_param("value", "any", "The value to render")],
            return_type="string",
            examples=["toStr([1, 2])"],
            implementation=render,
        )
    )


# -----------------------------------------------------------------------------
# Function Functions
# -----------------------------------------------------------------------------


def _compose(evaluator: Evaluator, value: Any, function: Any) -> Any:
    """`value . function` applies function to value."""
    return expect_function(function, "compose").call(evaluator, value)


def _global(evaluator: Evaluator, name: Any) -> Any:
    return evaluator.globals.lookup(expect_string(name, "global"))


def _register_function_functions() -> None:
    FunctionRegistry.register(
        FunctionDefinition(
            name="compose",
            description="Pipes a value into a function (operator .): x . f is f(x)",
            category=FunctionCategory.FUNCTION,
            parameters=[
                _param("value", "any", "The value to pipe"),
                _param("fn", "function", "The function to apply"),
            ],
            return_type="any",
            examples=["5 . add(3)", "[3, 1, 2] . sort . reverse"],
            implementation=_compose,
            needs_evaluator=True,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="global",
            description="Looks a name up in the global scope, () if unbound",
            category=FunctionCategory.FUNCTION,
            parameters=[_param("name", "string", "The global name")],
            return_type="any",
            examples=['global("add")(1)(2)'],
            implementation=_global,
            needs_evaluator=True,
        )
    )


# -----------------------------------------------------------------------------
# List Functions
# -----------------------------------------------------------------------------


def _nth(index: Any, items: Any) -> Any:
    position = expect_index(index, "nth")
    items = expect_list(items, "nth")
    if not 0 <= position < len(items):
        raise EvaluationError(
            f"nth index {position} out of range for list of length {len(items)}"
        )
    return items[position]


def _head(items: Any) -> Any:
    items = expect_list(items, "head")
    if not items:
        raise EvaluationError("head of empty list")
    return items[0]


def _tail(items: Any) -> list[Any]:
    return expect_list(items, "tail")[1:]


def _len(items: Any) -> float:
    return float(len(expect_list(items, "len")))


def _map(evaluator: Evaluator, items: Any, function: Any) -> list[Any]:
    function = expect_function(function, "map")
    return [function.call(evaluator, item) for item in expect_list(items, "map")]


def _foldl(evaluator: Evaluator, initial: Any, function: Any, items: Any) -> Any:
    function = expect_function(function, "foldl")
    acc = initial
    for item in expect_list(items, "foldl"):
        acc = evaluator.apply(function, [acc, item])
    return acc


def _foldr(evaluator: Evaluator, initial: Any, function: Any, items: Any) -> Any:
    function = expect_function(function, "foldr")
    acc = initial
    for item in reversed(expect_list(items, "foldr")):
        acc = evaluator.apply(function, [item, acc])
    return acc


def _filter(evaluator: Evaluator, items: Any, function: Any) -> list[Any]:
    function = expect_function(function, "filter")
    return [
        item for item in expect_list(items, "filter")
        if truthy(function.call(evaluator, item))
    ]


def _reduce(evaluator: Evaluator, items: Any, function: Any) -> Any:
    function = expect_function(function, "reduce")
    items = expect_list(items, "reduce")
    if not items:
        raise EvaluationError("reduce of empty list")
    acc = items[0]
    for item in items[1:]:
        acc = evaluator.apply(function, [acc, item])
    return acc


def _zip(evaluator: Evaluator, functions: Any, items: Any) -> list[Any]:
    """Applies each function to the element at the same index."""
    return [
        expect_function(function, "zip").call(evaluator, item)
        for function, item in zip(expect_list(functions, "zip"), expect_list(items, "zip"))
    ]


def _zip_with(evaluator: Evaluator, left: Any, function: Any, right: Any) -> list[Any]:
    function = expect_function(function, "zipWith")
    return [
        evaluator.apply(function, [a, b])
        for a, b in zip(expect_list(left, "zipWith"), expect_list(right, "zipWith"))
    ]


def _plus(items: Any, item: Any) -> list[Any]:
    return [*expect_list(items, "plus"), item]


def _minus(items: Any, item: Any) -> list[Any]:
    """Removes the first element equal to item."""
    items = expect_list(items, "minus")
    for index, candidate in enumerate(items):
        if values_equal(candidate, item):
            return items[:index] + items[index + 1:]
    return list(items)


def _count(value: Any, function: str) -> int:
    count = expect_index(value, function)
    if count < 0:
        raise EvaluationError(f"{function} expected a non-negative count but got {count}")
    return count


def _drop(items: Any, count: Any) -> list[Any]:
    return expect_list(items, "drop")[_count(count, "drop"):]


def _take(items: Any, count: Any) -> list[Any]:
    return expect_list(items, "take")[:_count(count, "take")]


def _slice(items: Any, start: Any, end: Any) -> list[Any]:
    """Elements from start to end, both inclusive."""
    items = expect_list(items, "slice")
    first = expect_index(start, "slice")
    last = expect_index(end, "slice")
    if last < first:
        return []
    if first < 0 or last >= len(items):
        raise EvaluationError(
            f"slice range {first}..{last} out of bounds for list of length {len(items)}"
        )
    return items[first:last + 1]


def _concat(left: Any, right: Any) -> Any:
    """List append/splice, or string concatenation of renderings (operator ..)."""
    if kind_of(left) is ValueKind.LIST:
        if kind_of(right) is ValueKind.LIST:
            return [*left, *right]
        return [*left, right]
    return render(left) + render(right)


def _reverse(items: Any) -> list[Any]:
    return list(reversed(expect_list(items, "reverse")))


def _sort(items: Any) -> list[Any]:
    """Sorts numbers ascending. Any other element is an error."""
    items = expect_list(items, "sort")
    for item in items:
        kind = kind_of(item)
        if kind is not ValueKind.NUMBER:
            raise EvaluationError(f"Cannot sort {kind.value} values, sort accepts numbers only")
    return sorted(items)


def _range(start: Any, end: Any) -> list[float]:
    """Numbers from start up to, not including, end."""
    first = expect_index(start, "range")
    last = expect_index(end, "range")
    return [float(i) for i in range(first, last)]


def _register_list_functions() -> None:
    items = _param("list", "list", "The list")
    function = _param("fn", "function", "The function to apply")

    definitions = [
        ("nth", "Element at a 0-based index", [_param("index", "number", "0-based index"), items],
         "any", ["nth(0)([1, 2])"], _nth, False),
        ("head", "First element", [items], "any", ["head([1, 2])"], _head, False),
        ("tail", "All elements but the first", [items], "list", ["tail([1, 2])"], _tail, False),
        ("len", "Number of elements", [items], "number", ["len(xs) > 0"], _len, False),
        ("map", "Applies fn to every element", [items, function], "list",
         ["map([1, 2, 3], fn(x) :: x * 2 end)"], _map, True),
        ("foldl", "Folds from the left: fn(acc)(x)",
         [_param("initial", "any", "Starting accumulator"), function, items], "any",
         ["foldl(0, add, [1, 2, 3])"], _foldl, True),
        ("foldr", "Folds from the right: fn(x)(acc)",
         [_param("initial", "any", "Starting accumulator"), function, items], "any",
         ["foldr([], fn(x, acc) :: acc .. x end, [1, 2])"], _foldr, True),
        ("filter", "Elements for which fn returns a truthy value", [items, function], "list",
         ["filter(xs, fn(x) :: x > 1 end)"], _filter, True),
        ("reduce", "Folds a non-empty list from its first element", [items, function], "any",
         ["reduce([1, 2, 3], mul)"], _reduce, True),
        ("zip", "Applies each function to the element at the same index",
         [_param("fns", "list", "Functions"), items], "list",
         ["zip([add(1), mul(2)], [10, 10])"], _zip, True),
        ("zipWith", "Combines two lists element-wise with fn",
         [items, function, _param("other", "list", "The second list")], "list",
         ["zipWith([1, 2], add, [10, 20])"], _zip_with, True),
        ("plus", "Appends one element", [items, _param("item", "any", "Element to append")],
         "list", ["plus([1], 2)"], _plus, False),
        ("minus", "Removes the first equal element",
         [items, _param("item", "any", "Element to remove")], "list",
         ["minus([1, 2, 1], 1)"], _minus, False),
        ("drop", "All but the first n elements", [items, _param("n", "number", "Count")],
         "list", ["drop([1, 2, 3], 1)"], _drop, False),
        ("take", "The first n elements", [items, _param("n", "number", "Count")],
         "list", ["take([1, 2, 3], 2)"], _take, False),
        ("slice", "Elements from start to end inclusive",
         [items, _param("start", "number", "First index"), _param("end", "number", "Last index")],
         "list", ["slice([1, 2, 3, 4], 1, 2)"], _slice, False),
        ("concat", "Appends to a list, or joins renderings as text (operator ..)",
         [_param("a", "any", "Left operand"), _param("b", "any", "Right operand")], "any",
         ['"n = " .. 3', "[1] .. [2, 3]"], _concat, False),
        ("reverse", "Elements in reverse order", [items], "list",
         ["reverse([1, 2])"], _reverse, False),
        ("sort", "Sorts a list of numbers ascending", [items], "list",
         ["sort([3, 1, 2])"], _sort, False),
        ("range", "Numbers from start up to, not including, end",
         [_param("start", "number", "First number"), _param("end", "number", "Stop before")],
         "list", ["range(0, 5)"], _range, False),
    ]

    for name, description, parameters, return_type, examples, implementation, needs_evaluator in definitions:
        FunctionRegistry.register(
            FunctionDefinition(
                name=name,
                description=description,
                category=FunctionCategory.LIST,
                parameters=parameters,
                return_type=return_type,
                examples=examples,
                implementation=implementation,
                needs_evaluator=needs_evaluator,
            )
        )


# -----------------------------------------------------------------------------
# String Functions
# -----------------------------------------------------------------------------

_DIGITS = "0123456789"


def _regex(pattern: Any) -> re.Pattern[str]:
    try:
        return re.compile(expect_string(pattern, "regex"))
    except re.error as e:
        raise EvaluationError(f"Invalid regex: {e}")


def _match(pattern: Any, text: Any) -> bool:
    """True if the whole text matches."""
    return expect_regex(pattern, "match").fullmatch(expect_string(text, "match")) is not None


def _replacement_parts(replacement: str, compiled: re.Pattern[str]) -> list[str | int]:
    """Split a replacement into literal text and group numbers.

    `$n` and `${name}` refer to groups; a backslash takes the next character
    literally. A multi-digit `$n` only grows while it names an existing group.
    """
    parts: list[str | int] = []
    literal: list[str] = []
    i = 0

    while i < len(replacement):
        char = replacement[i]

        if char == "\\":
            if i + 1 == len(replacement):
                raise EvaluationError("Invalid replacement: trailing backslash")
            literal.append(replacement[i + 1])
            i += 2
            continue

        if char != "$":
            literal.append(char)
            i += 1
            continue

        if literal:
            parts.append("".join(literal))
            literal = []

        if replacement.startswith("{", i + 1):
            close = replacement.find("}", i + 2)
            if close == -1:
                raise EvaluationError("Invalid replacement: missing '}' after '${'")
            name = replacement[i + 2:close]
            if name not in compiled.groupindex:
                raise EvaluationError(f"Invalid replacement: no group named '{name}'")
            parts.append(compiled.groupindex[name])
            i = close + 1
            continue

        j = i + 1
        if j == len(replacement) or replacement[j] not in _DIGITS:
            raise EvaluationError(
                "Invalid replacement: '$' must be followed by a group number or {name}"
            )
        group = int(replacement[j])
        if group > compiled.groups:
            raise EvaluationError(f"Invalid replacement: no group {group}")
        j += 1
        while (
            j < len(replacement)
            and replacement[j] in _DIGITS
            and group * 10 + int(replacement[j]) <= compiled.groups
        ):
            group = group * 10 + int(replacement[j])
            j += 1
        parts.append(group)
        i = j

    if literal:
        parts.append("".join(literal))
    return parts


def _replace(pattern: Any, text: Any, replacement: Any) -> str:
    """Replaces every match. `$1` or `${name}` in the replacement insert a group."""
    compiled = expect_regex(pattern, "replace")
    parts = _replacement_parts(expect_string(replacement, "replace"), compiled)

    def expand(match: re.Match[str]) -> str:
        return "".join(p if isinstance(p, str) else match.group(p) or "" for p in parts)

    return compiled.sub(expand, expect_string(text, "replace"))


def _split(pattern: Any, text: Any) -> list[Any]:
    """Pieces of text between matches. Captured groups are not included."""
    compiled = expect_regex(pattern, "split")
    text = expect_string(text, "split")

    pieces = []
    start = 0
    for match in compiled.finditer(text):
        pieces.append(text[start:match.start()])
        start = match.end()
    pieces.append(text[start:])
    return pieces


def _join(items: Any, separator: Any) -> str:
    separator = expect_string(separator, "join")
    return separator.join(render(item) for item in expect_list(items, "join"))


def _register_string_functions() -> None:
    pattern = _param("re", "regex", "A pattern built with regex()")
    text = _param("text", "string", "The text")

    FunctionRegistry.register(
        FunctionDefinition(
            name="regex",
            description="Compiles a regular expression",
            category=FunctionCategory.STRING,
            parameters=[_param("pattern", "string", "Regular expression source")],
            return_type="regex",
            examples=['regex("[0-9]+")'],
            implementation=_regex,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="match",
            description="True if the whole text matches the pattern",
            category=FunctionCategory.STRING,
            parameters=[pattern, text],
            return_type="bool",
            examples=['match(regex("[0-9]+"), "123")'],
            implementation=_match,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="replace",
            description="Replaces every match in text; $1 or ${name} insert a group, backslash escapes",
            category=FunctionCategory.STRING,
            parameters=[pattern, text, _param("replacement", "string", "Replacement text")],
            return_type="string",
            examples=['replace(regex("a"), "banana", "o")'],
            implementation=_replace,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="split",
            description="Splits text around matches, without captured groups",
            category=FunctionCategory.STRING,
            parameters=[pattern, text],
            return_type="list",
            examples=['split(regex(",\\s*"), "a, b,c")'],
            implementation=_split,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="join",
            description="Joins the renderings of list elements with a separator",
            category=FunctionCategory.STRING,
            parameters=[
                _param("list", "list", "Elements to join"),
                _param("separator", "string", "Text placed between elements"),
            ],
            return_type="string",
            examples=['join([1, 2, 3], ", ")'],
            implementation=_join,
        )
    )


# -----------------------------------------------------------------------------
# IO Functions
# -----------------------------------------------------------------------------


def _print(evaluator: Evaluator, value: Any) -> None:
    click.echo(render(value), file=evaluator.stdout)
    return None


def _read(evaluator: Evaluator, _: Any) -> str | None:
    """One line of input without its line ending, or () at end of input."""
    stream = evaluator.stdin or click.get_text_stream("stdin")
    line = stream.readline()
    if not line:
        return None
    return line.rstrip("\r\n")


def _register_io_functions() -> None:
    FunctionRegistry.register(
        FunctionDefinition(
            name="print",
            description="Writes the rendering of a value and a newline",
            category=FunctionCategory.IO,
            parameters=[_param("value", "any", "The value to print")],
            return_type="nil",
            examples=['print("hello")', '"n = " .. n . print'],
            implementation=_print,
            needs_evaluator=True,
        )
    )

    FunctionRegistry.register(
        FunctionDefinition(
            name="read",
            description="Reads one line of input, () at end of input",
            category=FunctionCategory.IO,
            parameters=[_param("_", "any", "Ignored")],
            return_type="string",
            examples=["let name :: read() in print(name)"],
            implementation=_read,
            needs_evaluator=True,
        )
    )
