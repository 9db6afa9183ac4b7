"""Tree-walking evaluator for Zy.

Walks the AST with an Environment and computes a value. Operators are not
built in: each one is resolved by name (`+` -> `add`, ...) in the current
environment at the time it runs, so rebinding a builtin rebinds its
operator.

Errors unwind as exceptions. The first diagnostic of a top-level run is
reported where it is raised; the rest of the unwind stays quiet.
"""

import logging
from typing import Any

from zy.builtins import install_builtins
from zy.config import ZyConfig
from zy.diagnostics import Diagnostic, DiagnosticReporter
from zy.environment import Environment
from zy.errors import EvaluationError, Severity, ZyError
from zy.parser import (
    ASTNode,
    Assignment,
    BinaryOp,
    BoolLiteral,
    Call,
    FunctionDef,
    If,
    LetBinding,
    ListLiteral,
    Nil,
    NumberLiteral,
    Sequence,
    StringLiteral,
    UnaryOp,
    VariableRef,
    parse,
)
from zy.values import Closure, FunctionValue

logger = logging.getLogger(__name__)

BINARY_OPERATORS = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "div",
    "=": "eq",
    "!=": "neq",
    "<": "lt",
    "<=": "lte",
    ">": "gt",
    ">=": "gte",
    "&&": "and",
    "||": "or",
    ".": "compose",
    "..": "concat",
}

UNARY_OPERATORS = {
    "!": "not",
    "-": "neg",
}


class Evaluator:
    """Evaluates Zy ASTs.

    One evaluator serves a whole session; call begin() before each top-level
    run to reset the per-run state.

    Usage:
        evaluator = Evaluator(globals_env)
        evaluator.begin(source)
        result = evaluator.evaluate(parse(source), globals_env)
    """

    def __init__(
        self,
        globals_env: Environment,
        reporter: DiagnosticReporter | None = None,
        config: ZyConfig | None = None,
        stdin: Any = None,
        stdout: Any = None,
    ):
        self.globals = globals_env
        self.reporter = reporter or DiagnosticReporter()
        self.config = config or ZyConfig()
        self.stdin = stdin
        self.stdout = stdout
        self.source = ""
        self.had_error = False
        self.depth = 0

    def begin(self, source: str) -> None:
        """Start a new top-level run of source."""
        self.source = source
        self.had_error = False
        self.depth = 0

    def evaluate(self, node: ASTNode, env: Environment | None = None) -> Any:
        """Evaluate an AST node and return the result."""
        if env is None:
            env = self.globals

        self.depth += 1
        try:
            if self.depth > self.config.max_depth:
                self._stack_overflow(node)

            method = getattr(self, f"_eval_{type(node).__name__.lower()}", None)
            if method is None:
                raise EvaluationError(f"Unknown node type: {type(node).__name__}")

            return method(node, env)

        except RecursionError:
            self._stack_overflow(node)

        except ZyError as error:
            if error.position is None:
                error.position = node.position
            self._report(error)
            if error.fatal:
                raise
            return None

        except Exception as exc:
            error = EvaluationError(
                f"Internal error: {type(exc).__name__}: {exc}", node.position
            )
            self._report(error)
            raise error from exc

        finally:
            self.depth -= 1

    def apply(self, function: Any, args: list[Any]) -> Any:
        """Apply args to function one at a time."""
        result = function
        for arg in args:
            if not isinstance(result, FunctionValue):
                raise EvaluationError("Extraneous argument in call")
            result = result.call(self, arg)
        return result

    # -------------------------------------------------------------------------
    # Node type evaluators
    # -------------------------------------------------------------------------

    def _eval_numberliteral(self, node: NumberLiteral, env: Environment) -> float:
        return float(node.value)

    def _eval_stringliteral(self, node: StringLiteral, env: Environment) -> str:
        return node.value

    def _eval_boolliteral(self, node: BoolLiteral, env: Environment) -> bool:
        return node.value

    def _eval_nil(self, node: Nil, env: Environment) -> None:
        return None

    def _eval_variableref(self, node: VariableRef, env: Environment) -> Any:
        return env.get(node.name)

    def _eval_listliteral(self, node: ListLiteral, env: Environment) -> list[Any]:
        return [self.evaluate(item, env) for item in node.items]

    def _eval_sequence(self, node: Sequence, env: Environment) -> Any:
        self.evaluate(node.first, env)
        return self.evaluate(node.second, env)

    def _eval_if(self, node: If, env: Environment) -> Any:
        """Only the boolean true selects the then-branch."""
        if self.evaluate(node.cond, env) is True:
            return self.evaluate(node.then, env)
        return self.evaluate(node.otherwise, env)

    def _eval_letbinding(self, node: LetBinding, env: Environment) -> Any:
        env.define(node.name, self.evaluate(node.value, env))
        result = self.evaluate(node.body, env)
        if node.next is not None:
            return self.evaluate(node.next, env)
        return result

    def _eval_functiondef(self, node: FunctionDef, env: Environment) -> Any:
        function = Closure(list(node.params), node.body, env, node.name)
        if node.name is not None:
            env.define(node.name, function)
        if node.next is not None:
            return self.evaluate(node.next, env)
        return function

    def _eval_call(self, node: Call, env: Environment) -> Any:
        """Evaluate a call, applying arguments left to right one at a time."""
        function = self.evaluate(node.callee, env)
        if not isinstance(function, FunctionValue):
            raise EvaluationError("Not a function")

        if not node.args:
            return function.call(self, None, env)

        for arg_node in node.args:
            arg = self.evaluate(arg_node, env)
            if not isinstance(function, FunctionValue):
                raise EvaluationError("Extraneous argument in call")
            function = function.call(self, arg, env)

        return function

    def _eval_assignment(self, node: Assignment, env: Environment) -> Any:
        value = self.evaluate(node.value, env)

        if not isinstance(node.target, VariableRef):
            raise EvaluationError("Invalid assignment target", node.target.position)

        try:
            env.assign(node.target.name, value)
        except EvaluationError as error:
            error.position = node.target.position
            raise

        return self.evaluate(node.next, env)

    def _eval_binaryop(self, node: BinaryOp, env: Environment) -> Any:
        """Evaluate both operands, then apply the operator's builtin."""
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)

        name = BINARY_OPERATORS.get(node.operator)
        if name is None:
            raise EvaluationError(f"Unknown operator: {node.operator}")

        return self.apply(self._operator_function(node.operator, name, env), [left, right])

    def _eval_unaryop(self, node: UnaryOp, env: Environment) -> Any:
        operand = self.evaluate(node.operand, env)

        name = UNARY_OPERATORS.get(node.operator)
        if name is None:
            raise EvaluationError(f"Unknown unary operator: {node.operator}")

        return self.apply(self._operator_function(node.operator, name, env), [operand])

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _operator_function(self, operator: str, name: str, env: Environment) -> FunctionValue:
        function = env.get(name)
        if not isinstance(function, FunctionValue):
            raise EvaluationError(f"Operator '{operator}' needs '{name}' to be a function")
        return function

    def _report(self, error: ZyError) -> None:
        if self.had_error:
            return
        self.had_error = True
        self.reporter.report_error(error, self.source)

    def _stack_overflow(self, node: ASTNode) -> None:
        logger.error("Evaluation depth exceeded %d, terminating", self.config.max_depth)
        self.reporter.report(
            Diagnostic(Severity.FATAL, node.position, "Stack overflow", self.source)
        )
        raise SystemExit(1)


# -----------------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------------


def evaluate(source: str, variables: dict[str, Any] | None = None) -> Any:
    """Evaluate a source string in a fresh global environment.

    This is the simplest entry point; use zy.session.Session to keep
    bindings across several evaluations.

    Args:
        source: Zy source text
        variables: Extra global bindings

    Returns:
        The value of the program

    Example:
        result = evaluate("let f :: fn(x) :: x * 2 end in f(21)")
        # result = 42.0
    """
    globals_env = Environment()
    install_builtins(globals_env)
    for name, value in (variables or {}).items():
        globals_env.define(name, value)

    evaluator = Evaluator(globals_env)
    evaluator.begin(source)
    return evaluator.evaluate(parse(source), globals_env)
