"""Tests for the builtin function library.

Tests cover:
- Registry: registration, lookup and documentation export
- Currying: builtins take one argument per application step
- Every builtin category
"""

import io
import math
import re

import pytest

from zy.builtins import register_all_builtins
from zy.errors import EvaluationError
from zy.evaluator import evaluate
from zy.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)
from zy.session import Session
from zy.values import Native


@pytest.fixture(autouse=True)
def setup_functions():
    """Register built-in functions before each test."""
    FunctionRegistry.clear()
    register_all_builtins()
    yield
    FunctionRegistry.clear()


# =============================================================================
# Registry Tests
# =============================================================================


class TestFunctionRegistry:
    def test_builtins_are_registered(self):
        for name in ["add", "compose", "foldl", "regex", "print", "read", "range"]:
            assert FunctionRegistry.is_registered(name)

    def test_get_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown builtin"):
            FunctionRegistry.get("nope")

    def test_signature_is_curried(self):
        assert FunctionRegistry.get("foldl").signature == "foldl(initial)(fn)(list)"

    def test_list_by_category(self):
        names = {f.name for f in FunctionRegistry.list_by_category(FunctionCategory.MATH)}

        assert names == {"add", "sub", "mul", "div", "mod", "neg"}

    def test_zero_parameter_builtin_is_rejected(self):
        with pytest.raises(ValueError, match="at least one parameter"):
            FunctionRegistry.register(
                FunctionDefinition(
                    name="nothing",
                    description="Takes nothing",
                    category=FunctionCategory.FUNCTION,
                    parameters=[],
                    return_type="nil",
                    implementation=lambda: None,
                )
            )

    def test_export_documentation(self):
        docs = FunctionRegistry.export_documentation()

        assert docs["functions"]["zipWith"]["signature"] == "zipWith(list)(fn)(other)"
        assert "io" in docs["byCategory"]

    def test_to_native_collects_one_argument_per_call(self):
        native = FunctionDefinition(
            name="pair",
            description="Builds a list of two values",
            category=FunctionCategory.LIST,
            parameters=[
                FunctionParameter("a", "any", "First"),
                FunctionParameter("b", "any", "Second"),
            ],
            return_type="list",
            implementation=lambda a, b: [a, b],
        ).to_native()

        partial = native.call(None, 1.0)

        assert isinstance(partial, Native)
        assert partial.call(None, 2.0) == [1.0, 2.0]
        assert partial.call(None, 3.0) == [1.0, 3.0]


class TestCurrying:
    def test_one_argument_per_step(self):
        assert evaluate("add(1)(2)") == 3

    def test_several_arguments_in_one_call(self):
        assert evaluate("add(1, 2)") == 3

    def test_builtin_as_value(self):
        assert evaluate("foldl(0, add, [1, 2, 3])") == 6

    def test_extraneous_argument(self):
        with pytest.raises(EvaluationError, match="Extraneous argument in call"):
            evaluate("neg(1, 2)")


# =============================================================================
# Category Tests
# =============================================================================


class TestMathFunctions:
    def test_arithmetic(self):
        assert evaluate("sub(10)(4)") == 6
        assert evaluate("mul(3, 4)") == 12
        assert evaluate("div(9, 3)") == 3

    def test_mod_keeps_sign_of_dividend(self):
        assert evaluate("mod(7, 3)") == 1
        assert evaluate("mod(-7, 3)") == -1

    def test_neg(self):
        assert evaluate("neg(3)") == -3

    def test_mod_by_zero_is_nan(self):
        assert math.isnan(evaluate("mod(1, 0)"))
        assert math.isnan(evaluate("mod(div(1, 0), 2)"))

    def test_div_by_negative_zero(self):
        assert evaluate("div(1, neg(0))") == -math.inf

    def test_range_needs_whole_numbers(self):
        with pytest.raises(EvaluationError, match="range expected a whole number"):
            evaluate("range(0, div(1, 0))")

    def test_type_error_names_the_builtin(self):
        with pytest.raises(EvaluationError, match="mul expected a number but got list"):
            evaluate("mul([1], 2)")


class TestComparisonFunctions:
    def test_numeric_comparisons(self):
        assert evaluate("lt(1, 2)") is True
        assert evaluate("gt(1, 2)") is False
        assert evaluate("lte(2, 2)") is True
        assert evaluate("gte(1, 2)") is False

    def test_ordering_is_numeric_only(self):
        with pytest.raises(EvaluationError, match="lt expected a number but got string"):
            evaluate('"a" < "b"')

    def test_equality_across_kinds(self):
        assert evaluate("eq((), ())") is True
        assert evaluate("eq(true, 1)") is False
        assert evaluate('neq("a", "b")') is True

    def test_functions_compare_by_identity(self):
        assert evaluate("add = add") is True
        assert evaluate("add(1) = add(1)") is False


class TestLogicFunctions:
    def test_and_or_not(self):
        assert evaluate('global("and")(1, ())') is False
        assert evaluate("or((), 0)") is True
        assert evaluate("not(false)") is True


class TestConversionFunctions:
    def test_to_num(self):
        assert evaluate('toNum("42") + 1') == 43
        assert evaluate('toNum(" 2.5 ")') == 2.5
        assert evaluate("toNum(7)") == 7

    def test_to_num_invalid(self):
        with pytest.raises(EvaluationError, match='toNum cannot convert "abc"'):
            evaluate('toNum("abc")')

    def test_to_str(self):
        assert evaluate("toStr([1, 2.5, ()])") == "[1, 2.5, ()]"
        assert evaluate("toStr(true)") == "true"
        assert evaluate("toStr(add)") == "<function add>"
        assert evaluate("toStr(fn(x) :: x end)") == "<function>"
        assert evaluate('toStr(regex("a+"))') == "<regex a+>"

    def test_to_bool(self):
        assert evaluate("toBool(0)") is True
        assert evaluate("toBool(())") is False


class TestFunctionFunctions:
    def test_compose_applies_right_to_left_value(self):
        assert evaluate("compose(5, neg)") == -5
        assert evaluate("[3, 1, 2] . sort . reverse") == [3, 2, 1]

    def test_compose_needs_a_function(self):
        with pytest.raises(EvaluationError, match="compose expected a function but got number"):
            evaluate("1 . 2")

    def test_global(self):
        assert evaluate('global("add")(1)(2)') == 3
        assert evaluate('global("nope")') is None

    def test_global_ignores_local_shadowing(self):
        source = 'let f :: fn(add) :: global("add")(1, 2) end in f(0)'
        assert evaluate(source) == 3


class TestListFunctions:
    def test_nth(self):
        assert evaluate("nth(1)([10, 20, 30])") == 20

    def test_nth_out_of_range(self):
        with pytest.raises(EvaluationError, match="nth index 3 out of range"):
            evaluate("nth(3, [1])")

    def test_nth_needs_whole_number(self):
        with pytest.raises(EvaluationError, match="whole number"):
            evaluate("nth(0.5, [1])")

    def test_head_tail_len(self):
        assert evaluate("head([1, 2])") == 1
        assert evaluate("tail([1, 2])") == [2]
        assert evaluate("tail([])") == []
        assert evaluate("len([1, 2, 3])") == 3

    def test_head_of_empty_list(self):
        with pytest.raises(EvaluationError, match="head of empty list"):
            evaluate("head([])")

    def test_map(self):
        assert evaluate("map([1, 2], neg)") == [-1, -2]

    def test_folds(self):
        assert evaluate("foldl(0, sub, [1, 2, 3])") == -6
        assert evaluate("foldr(0, sub, [1, 2, 3])") == 2

    def test_filter(self):
        assert evaluate("filter([1, 2, 3, 4], fn(x) :: x > 2 end)") == [3, 4]

    def test_reduce(self):
        assert evaluate("reduce([1, 2, 3, 4], mul)") == 24

    def test_reduce_of_empty_list(self):
        with pytest.raises(EvaluationError, match="reduce of empty list"):
            evaluate("reduce([], add)")

    def test_zip_applies_functions_pairwise(self):
        assert evaluate("zip([add(1), mul(2)], [10, 10])") == [11, 20]

    def test_zip_with(self):
        assert evaluate("zipWith([1, 2], add, [10, 20, 30])") == [11, 22]

    def test_plus_and_minus(self):
        assert evaluate("plus([1], [2])") == [1, [2]]
        assert evaluate("minus([1, 2, 1], 1)") == [2, 1]
        assert evaluate("minus([1], 5)") == [1]

    def test_drop_and_take(self):
        assert evaluate("drop([1, 2, 3], 1)") == [2, 3]
        assert evaluate("take([1, 2, 3], 2)") == [1, 2]
        assert evaluate("take([1], 5)") == [1]

    def test_negative_count(self):
        with pytest.raises(EvaluationError, match="non-negative"):
            evaluate("drop([1], -1)")

    def test_slice_is_inclusive(self):
        assert evaluate("slice([1, 2, 3, 4], 1, 2)") == [2, 3]
        assert evaluate("slice([1, 2, 3], 2, 1)") == []

    def test_slice_out_of_bounds(self):
        with pytest.raises(EvaluationError, match="out of bounds"):
            evaluate("slice([1, 2], 0, 2)")

    def test_concat(self):
        assert evaluate("concat([1], [2])") == [1, 2]
        assert evaluate('concat("a", [1])') == "a[1]"

    def test_reverse_and_sort(self):
        assert evaluate("reverse([1, 2, 3])") == [3, 2, 1]
        assert evaluate("sort([3, 1, 2])") == [1, 2, 3]

    def test_sort_rejects_non_numbers(self):
        with pytest.raises(EvaluationError, match="Cannot sort string"):
            evaluate('sort(["a", "b"])')

    def test_range(self):
        assert evaluate("range(0, 3)") == [0, 1, 2]
        assert evaluate("range(3, 0)") == []

    def test_lists_are_not_mutated(self):
        assert evaluate("let xs :: [1] in plus(xs, 2); xs") == [1]


class TestStringFunctions:
    def test_match_is_whole_string(self):
        assert evaluate('match(regex("[0-9]+"), "123")') is True
        assert evaluate('match(regex("[0-9]+"), "12a")') is False

    def test_replace(self):
        assert evaluate('replace(regex("a"), "banana", "o")') == "bonono"

    def test_replace_group_references(self):
        assert evaluate('replace(regex("(a)(n)"), "banana", "$2$1")') == "bnanaa"
        assert evaluate('replace(regex("(?P<v>a)"), "ban", "[${v}]")') == "b[a]n"

    def test_replace_escaped_dollar(self):
        assert evaluate(r'replace(regex("a"), "ba", "\$1")') == "b$1"

    def test_replace_group_number_stops_at_group_count(self):
        assert evaluate('replace(regex("(a)"), "a", "$10")') == "a0"

    def test_replace_unknown_group(self):
        with pytest.raises(EvaluationError, match="no group 2"):
            evaluate('replace(regex("(a)"), "a", "$2")')

    def test_split(self):
        assert evaluate(r'split(regex(",\s*"), "a, b,c")') == ["a", "b", "c"]

    def test_split_leaves_out_captured_groups(self):
        assert evaluate('split(regex("(,)"), "a,b")') == ["a", "b"]

    def test_join(self):
        assert evaluate('join([1, "b", 2.5], ", ")') == "1, b, 2.5"

    def test_regex_value(self):
        assert isinstance(evaluate('regex("x")'), re.Pattern)

    def test_invalid_regex(self):
        with pytest.raises(EvaluationError, match="Invalid regex"):
            evaluate('regex("(")')

    def test_match_needs_a_regex(self):
        with pytest.raises(EvaluationError, match="match expected a regex but got string"):
            evaluate('match("a", "a")')


class TestIOFunctions:
    def test_print_writes_rendering(self):
        out = io.StringIO()
        result = Session(stdout=out).run('print([1, "two"])')

        assert out.getvalue() == "[1, two]\n"
        assert result is None

    def test_read_lines_then_nil(self):
        session = Session(stdin=io.StringIO("hello\r\nworld"))

        assert session.run("read()") == "hello"
        assert session.run("read()") == "world"
        assert session.run("read()") is None

    def test_read_and_convert(self):
        session = Session(stdin=io.StringIO("41\n"))

        assert session.run("toNum(read()) + 1") == 42
