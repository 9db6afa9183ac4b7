"""Error types shared by the Zy lexer, parser and evaluator.

Every error carries a severity alongside its message and source position.
Fatal errors abort the current top-level evaluation; non-fatal errors are
reported once and the failed subexpression evaluates to Nil.
"""

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """How an error affects the evaluation that raised it."""

    FATAL = "fatal"
    ERROR = "error"  # non-fatal: report and continue with Nil


@dataclass(frozen=True)
class Position:
    """1-based line/column location in the source text."""

    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        return f"({self.line}, {self.column})"


class ZyError(Exception):
    """Base class for all errors raised while running Zy source.

    Attributes:
        message: Human-readable description
        position: Source position, or None until the evaluator assigns one
        severity: FATAL or ERROR
    """

    def __init__(
        self,
        message: str,
        position: Position | None = None,
        severity: Severity = Severity.FATAL,
    ):
        self.message = message
        self.position = position
        self.severity = severity
        super().__init__(message)

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.FATAL

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} at line {self.position.line}, column {self.position.column}"


class EvaluationError(ZyError):
    """Error during evaluation (undefined names, bad calls, builtin type errors)."""
    pass
