"""Interpreter sessions.

A Session owns one global environment and one evaluator. Batch mode runs a
single program through it; the REPL runs one line at a time, so definitions
from earlier lines stay visible to later ones.
"""

import logging
import sys
from typing import Any

from zy.builtins import install_builtins
from zy.config import ZyConfig
from zy.diagnostics import Diagnostic, DiagnosticReporter
from zy.environment import Environment
from zy.errors import Position, Severity
from zy.evaluator import BINARY_OPERATORS, UNARY_OPERATORS, Evaluator
from zy.lexer import LexerError
from zy.parser import FunctionDef, LetBinding, ParseError, Parser

logger = logging.getLogger(__name__)

OPERATOR_BUILTINS = frozenset(BINARY_OPERATORS.values()) | frozenset(UNARY_OPERATORS.values())


class Session:
    """A global environment plus the evaluator that runs code against it.

    Usage:
        session = Session(args=["a", "b"])
        session.run('print(len(args))')
    """

    def __init__(
        self,
        config: ZyConfig | None = None,
        reporter: DiagnosticReporter | None = None,
        args: list[str] | None = None,
        stdin: Any = None,
        stdout: Any = None,
    ):
        self.config = config or ZyConfig()
        self.reporter = reporter or DiagnosticReporter(color=self.config.color)

        self.globals = Environment()
        install_builtins(self.globals)
        if args is not None:
            self.globals.define(self.config.args_name, list(args))

        self.evaluator = Evaluator(
            self.globals,
            reporter=self.reporter,
            config=self.config,
            stdin=stdin,
            stdout=stdout,
        )

        limit = self.config.recursion_limit
        if sys.getrecursionlimit() < limit:
            sys.setrecursionlimit(limit)

    def run(self, source: str) -> Any:
        """Parse and evaluate source against the session globals.

        Lexer and parser errors are reported here; evaluation errors are
        reported by the evaluator where they are raised. Either way the
        error is re-raised once it has been printed. The reporter only keeps
        the diagnostics of the latest run.
        """
        self.evaluator.begin(source)
        self.reporter.clear()

        try:
            parser = Parser(source)
            program = parser.parse()
        except (LexerError, ParseError) as e:
            self.evaluator.had_error = True
            self.reporter.report_error(e, source)
            raise
        except RecursionError:
            self._stack_overflow(parser.location, source)

        self._warn_operator_shadowing(program)

        result = self.evaluator.evaluate(program, self.globals)
        logger.debug("Evaluated %d characters of source", len(source))
        return result

    def _stack_overflow(self, position: Position, source: str) -> None:
        logger.error("Parser nesting exceeded the recursion limit, terminating")
        self.reporter.report(Diagnostic(Severity.FATAL, position, "Stack overflow", source))
        raise SystemExit(1)

    def run_file(self, path: str) -> Any:
        with open(path, encoding="utf-8") as f:
            return self.run(f.read())

    def _warn_operator_shadowing(self, program: Any) -> None:
        """Log a warning for top-level definitions that rebind an operator."""
        node = program
        while isinstance(node, (LetBinding, FunctionDef)):
            if node.name in OPERATOR_BUILTINS:
                logger.warning(
                    "Definition of '%s' at %s rebinds an operator", node.name, node.position
                )
            node = node.next
