"""Zy: a small dynamically typed, expression-oriented functional language.

Every construct is an expression. Functions are curried closures, operators
are ordinary global functions looked up by name, and a program is run either
as a batch file or one line at a time in the REPL.

Usage:
    from zy import Session, evaluate

    evaluate("[1, 2, 3] . map(fn(x) :: x * 2 end)")   # [2.0, 4.0, 6.0]

    session = Session()
    session.run("let double :: fn(x) :: x * 2 end in ()")
    session.run("double(21)")                           # 42.0
"""

from zy.config import ZyConfig
from zy.diagnostics import Diagnostic, DiagnosticReporter, format_diagnostic
from zy.environment import Environment
from zy.errors import EvaluationError, Position, Severity, ZyError
from zy.evaluator import Evaluator, evaluate
from zy.functions import FunctionCategory, FunctionDefinition, FunctionRegistry
from zy.lexer import Lexer, LexerError, Token, TokenType
from zy.parser import ParseError, Parser, parse
from zy.session import Session
from zy.values import render

__all__ = [
    # Configuration
    "ZyConfig",
    # Front end
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "Parser",
    "ParseError",
    "parse",
    # Evaluation
    "Environment",
    "Evaluator",
    "EvaluationError",
    "evaluate",
    "render",
    "Session",
    # Builtins
    "FunctionCategory",
    "FunctionDefinition",
    "FunctionRegistry",
    # Errors and diagnostics
    "Diagnostic",
    "DiagnosticReporter",
    "Position",
    "Severity",
    "ZyError",
    "format_diagnostic",
]
