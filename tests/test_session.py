"""Tests for interpreter sessions."""

import logging
import sys

import pytest

from zy.config import ZyConfig
from zy.diagnostics import DiagnosticReporter
from zy.errors import EvaluationError
from zy.lexer import LexerError
from zy.parser import ParseError
from zy.session import Session


@pytest.fixture
def reporter():
    return DiagnosticReporter(color=False)


@pytest.fixture
def session(reporter):
    return Session(reporter=reporter)


class TestSessionState:
    def test_bindings_persist_between_runs(self, session):
        session.run("let x :: 1 in ()")
        session.run("x :: x + 41 in ()")

        assert session.run("x") == 42

    def test_functions_persist_between_runs(self, session):
        session.run("fn double(x) :: x * 2 end")

        assert session.run("double(21)") == 42

    def test_args_are_bound_as_strings(self):
        session = Session(args=["a", "b"])

        assert session.run("len(args)") == 2
        assert session.run("nth(0)(args)") == "a"

    def test_args_name_is_configurable(self):
        session = Session(config=ZyConfig(args_name="argv"), args=["x"])

        assert session.run("argv") == ["x"]

    def test_args_unbound_without_arguments(self, session):
        assert not session.globals.is_defined("args")

    def test_sessions_are_independent(self):
        first = Session()
        first.run("let add :: fn(a, b) :: a * b end")

        assert Session().run("2 + 3") == 5

    def test_raises_recursion_limit(self):
        config = ZyConfig(max_depth=200)
        Session(config=config)

        assert sys.getrecursionlimit() >= config.recursion_limit


class TestSessionErrors:
    def test_parse_error_reported_once(self, session, reporter):
        with pytest.raises(ParseError):
            session.run("let x :: ")

        assert len(reporter.diagnostics) == 1
        assert reporter.diagnostics[0].message.startswith("Expected an expression")

    def test_lexer_error_reported(self, session, reporter):
        with pytest.raises(LexerError):
            session.run("1 # 2")

        assert reporter.diagnostics[0].message == "Unexpected character '#'"

    def test_undefined_variable_reported_at_reference(self, session, reporter, capsys):
        with pytest.raises(EvaluationError):
            session.run("let x :: y in x")

        assert len(reporter.diagnostics) == 1
        assert "fatal error (1, 10): Undefined variable y" in capsys.readouterr().out

    def test_session_recovers_after_an_error(self, session, reporter):
        with pytest.raises(EvaluationError):
            session.run("nope")

        assert session.run("1 + 1") == 2

        with pytest.raises(EvaluationError):
            session.run("nope")

        assert len(reporter.diagnostics) == 1

    def test_reporter_keeps_only_the_latest_run(self, session, reporter):
        for _ in range(3):
            with pytest.raises(EvaluationError):
                session.run("missing")

        assert [d.message for d in reporter.diagnostics] == ["Undefined variable missing"]

        session.run("1")

        assert reporter.diagnostics == []

    def test_stack_overflow_exits(self, reporter):
        session = Session(config=ZyConfig(max_depth=100), reporter=reporter)

        with pytest.raises(SystemExit) as exc_info:
            session.run("fn f(n) :: f(n + 1) end; f(0)")

        assert exc_info.value.code == 1
        assert reporter.diagnostics[-1].message == "Stack overflow"

    def test_deeply_nested_source_is_a_stack_overflow(self, reporter):
        session = Session(reporter=reporter)
        source = "(" * 50000 + "1" + ")" * 50000

        with pytest.raises(SystemExit) as exc_info:
            session.run(source)

        assert exc_info.value.code == 1
        assert [d.message for d in reporter.diagnostics] == ["Stack overflow"]
        assert reporter.diagnostics[0].position.line == 1


class TestOperatorRebinding:
    def test_rebinding_changes_operator(self, session):
        assert session.run("let add :: fn(a, b) :: a * b end in 2 + 3") == 6

    def test_rebinding_persists(self, session):
        session.run("let sub :: fn(a, b) :: a + b end")

        assert session.run("5 - 1") == 6

    def test_rebinding_logs_a_warning(self, session, caplog):
        with caplog.at_level(logging.WARNING, logger="zy.session"):
            session.run("let add :: fn(a, b) :: a * b end and let x :: 1")

        assert "rebinds an operator" in caplog.text
        assert "'add'" in caplog.text

    def test_ordinary_binding_does_not_warn(self, session, caplog):
        with caplog.at_level(logging.WARNING, logger="zy.session"):
            session.run("let total :: 1")

        assert caplog.text == ""


class TestRunFile:
    def test_run_file(self, session, tmp_path):
        path = tmp_path / "prog.zy"
        path.write_text("' sums a list\nfoldl(0, add, [1, 2, 3])\n", encoding="utf-8")

        assert session.run_file(str(path)) == 6
