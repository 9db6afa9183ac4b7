"""Tests for the zy CLI."""

import json

import pytest
from click.testing import CliRunner

from zy.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def program(tmp_path):
    def write(source: str):
        path = tmp_path / "prog.zy"
        path.write_text(source, encoding="utf-8")
        return str(path)

    return write


class TestRun:
    def test_run_prints_output(self, runner, program):
        path = program('print("hello " .. nth(0)(args))')
        result = runner.invoke(cli, ["--no-color", "run", path, "world"])

        assert result.exit_code == 0
        assert "hello world" in result.output

    def test_run_does_not_echo_the_result(self, runner, program):
        result = runner.invoke(cli, ["--no-color", "run", program("1 + 1")])

        assert result.exit_code == 0
        assert result.output == ""

    def test_run_error_exits_1(self, runner, program):
        result = runner.invoke(cli, ["--no-color", "run", program("let x :: y in x")])

        assert result.exit_code == 1
        assert "fatal error (1, 10): Undefined variable y" in result.output
        assert "let x :: y in x\n         ^" in result.output

    def test_run_parse_error_exits_1(self, runner, program):
        result = runner.invoke(cli, ["--no-color", "run", program("(1 + 2")])

        assert result.exit_code == 1
        assert "fatal error (1, 7): Expected ')'" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["run", str(tmp_path / "missing.zy")])

        assert result.exit_code != 0

    def test_stack_overflow(self, runner, program):
        path = program("fn f(n) :: f(n) end; f(0)")
        result = runner.invoke(cli, ["--no-color", "--max-depth", "50", "run", path])

        assert result.exit_code == 1
        assert "Stack overflow" in result.output

    def test_deeply_nested_program(self, runner, program):
        path = program("[" * 50000 + "]" * 50000)
        result = runner.invoke(cli, ["--no-color", "run", path])

        assert result.exit_code == 1
        assert "fatal error" in result.output
        assert "Stack overflow" in result.output
        assert "Traceback" not in result.output

    def test_invalid_max_depth_env(self, runner, program):
        result = runner.invoke(
            cli, ["run", program("1")], env={"ZY_MAX_DEPTH": "lots"}
        )

        assert result.exit_code == 1
        assert "ZY_MAX_DEPTH must be an integer" in result.output


class TestRepl:
    def test_bindings_persist_across_lines(self, runner):
        result = runner.invoke(
            cli, ["--no-color", "repl"], input="let x :: 2 in ()\nx * 21\n"
        )

        assert result.exit_code == 0
        assert "zy => " in result.output
        assert "=> ()" in result.output
        assert "=> 42" in result.output

    def test_repl_is_the_default(self, runner):
        result = runner.invoke(cli, ["--no-color"], input="1 + 1\n")

        assert result.exit_code == 0
        assert "=> 2" in result.output

    def test_errors_do_not_stop_the_loop(self, runner):
        result = runner.invoke(cli, ["--no-color", "repl"], input="y\n[1, 2]\n")

        assert result.exit_code == 0
        assert "Undefined variable y" in result.output
        assert "=> [1, 2]" in result.output

    def test_blank_lines_are_skipped(self, runner):
        result = runner.invoke(cli, ["--no-color", "repl"], input="\n\n3\n")

        assert result.output.count("=> 3") == 1
        assert "=> ()" not in result.output

    def test_read_uses_the_repl_input(self, runner):
        result = runner.invoke(
            cli, ["--no-color", "repl"], input="toNum(read()) * 2\n21\n"
        )

        assert "=> 42" in result.output

    def test_custom_prompt(self, runner):
        result = runner.invoke(cli, ["--no-color"], input="1\n", env={"ZY_PROMPT": "? "})

        assert "? " in result.output


class TestBuiltins:
    def test_lists_every_category(self, runner):
        result = runner.invoke(cli, ["builtins"])

        assert result.exit_code == 0
        assert "foldl(initial)(fn)(list)" in result.output
        assert "regex(pattern)" in result.output
        assert "builtins" in result.output

    def test_filter_by_category(self, runner):
        result = runner.invoke(cli, ["builtins", "--category", "math"])

        assert result.exit_code == 0
        assert "add(a)(b)" in result.output
        assert "foldl" not in result.output
        assert "6 builtins" in result.output

    def test_json_documentation(self, runner):
        result = runner.invoke(cli, ["builtins", "--json", "--category", "list"])

        assert result.exit_code == 0
        docs = json.loads(result.output)
        assert docs["functions"]["foldl"]["signature"] == "foldl(initial)(fn)(list)"
        assert list(docs["byCategory"]) == ["list"]
        assert "add" not in docs["functions"]

    def test_unknown_category(self, runner):
        result = runner.invoke(cli, ["builtins", "--category", "nope"])

        assert result.exit_code != 0
