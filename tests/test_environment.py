"""Tests for lexical scope frames."""

import pytest

from zy.environment import Environment
from zy.errors import EvaluationError


class TestEnvironment:
    def test_define_and_get(self):
        env = Environment()
        env.define("x", 1.0)

        assert env.get("x") == 1.0

    def test_child_sees_parent(self):
        parent = Environment()
        parent.define("x", 1.0)

        assert parent.child().get("x") == 1.0

    def test_define_in_child_shadows(self):
        parent = Environment()
        parent.define("x", 1.0)
        child = parent.child()
        child.define("x", 2.0)

        assert child.get("x") == 2.0
        assert parent.get("x") == 1.0

    def test_assign_updates_nearest_definition(self):
        parent = Environment()
        parent.define("x", 1.0)
        child = parent.child()
        child.assign("x", 5.0)

        assert parent.get("x") == 5.0
        assert "x" not in child.values

    def test_assign_undefined_raises(self):
        with pytest.raises(EvaluationError, match="Undefined variable x"):
            Environment().assign("x", 1.0)

    def test_get_undefined_raises(self):
        with pytest.raises(EvaluationError, match="Undefined variable nope"):
            Environment().child().get("nope")

    def test_lookup_default(self):
        env = Environment()

        assert env.lookup("nope") is None
        assert env.lookup("nope", 7) == 7

    def test_nil_binding_is_defined(self):
        env = Environment()
        env.define("x", None)

        assert env.is_defined("x")
        assert env.get("x") is None
        assert not env.is_defined("y")
