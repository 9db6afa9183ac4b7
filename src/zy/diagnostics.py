"""Diagnostic formatting and reporting.

A diagnostic is rendered as a header line, the offending source line, and a
caret under the error column:

    fatal error (1, 10): Undefined variable y
    let x :: y in x
             ^
"""

import logging
from dataclasses import dataclass, field

import click

from zy.errors import Position, Severity, ZyError

logger = logging.getLogger(__name__)

SEVERITY_COLOURS = {
    Severity.FATAL: "red",
    Severity.ERROR: "yellow",
}


@dataclass(frozen=True)
class Diagnostic:
    """Everything needed to print one error against its source text."""

    severity: Severity
    position: Position
    message: str
    source: str

    @classmethod
    def from_error(cls, error: ZyError, source: str) -> "Diagnostic":
        return cls(
            severity=error.severity,
            position=error.position or Position(),
            message=error.message,
            source=source,
        )

    @property
    def label(self) -> str:
        return "fatal error" if self.severity is Severity.FATAL else "error"

    def source_line(self) -> str:
        lines = self.source.split("\n")
        if 1 <= self.position.line <= len(lines):
            return lines[self.position.line - 1]
        return ""


def format_diagnostic(diagnostic: Diagnostic, color: bool = True) -> str:
    """Render a diagnostic as header, source line and caret."""
    header = f"{diagnostic.label} {diagnostic.position}: {diagnostic.message}"
    if color:
        header = click.style(header, fg=SEVERITY_COLOURS[diagnostic.severity])

    caret = " " * max(diagnostic.position.column - 1, 0) + "^"
    return "\n".join([header, diagnostic.source_line(), caret])


@dataclass
class DiagnosticReporter:
    """Prints diagnostics and remembers what it printed."""

    color: bool = True
    err: bool = False
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        logger.debug(
            "Reporting %s at %s: %s",
            diagnostic.severity.value,
            diagnostic.position,
            diagnostic.message,
        )
        click.echo(format_diagnostic(diagnostic, color=self.color), err=self.err)

    def report_error(self, error: ZyError, source: str) -> None:
        self.report(Diagnostic.from_error(error, source))

    def clear(self) -> None:
        self.diagnostics.clear()
