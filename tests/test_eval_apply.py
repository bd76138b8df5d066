"""Tests for Scope.eval and Scope.apply."""

import pytest

from digestx import Scope


class _Compiled:
    """Stands in for the output of an expression compiler."""

    def __init__(self, name):
        self.name = name

    def evaluate(self, scope, locals):
        if locals and self.name in locals:
            return locals[self.name]
        return getattr(scope, self.name)


class TestEval:
    def test_returns_result(self):
        scope = Scope()
        scope.value = 42
        assert scope.eval(lambda s: s.value) == 42

    def test_passes_locals_through(self):
        scope = Scope()
        scope.value = 42
        assert scope.eval(lambda s, extra: s.value + extra, 2) == 44

    def test_evaluate_method_expressions(self):
        scope = Scope()
        scope.value = 1
        assert scope.eval(_Compiled("value")) == 1
        assert scope.eval(_Compiled("value"), {"value": 2}) == 2

    def test_watch_accepts_evaluate_method_expressions(self):
        scope = Scope()
        scope.value = "a"
        calls = []
        scope.watch(_Compiled("value"), lambda new, old, s: calls.append(new))
        scope.digest()
        assert calls == ["a"]

    def test_does_not_touch_phase(self):
        scope = Scope()
        assert scope.eval(lambda s: s.phase) is None


class TestApply:
    def test_runs_expression_then_digests(self):
        scope = Scope()
        scope.value = "a"
        scope.counter = 0

        def listener(new, old, s):
            s.counter += 1

        scope.watch(lambda s: s.value, listener)
        scope.digest()
        assert scope.counter == 1

        scope.apply(lambda s: setattr(s, "value", "b"))
        assert scope.counter == 2

    def test_returns_expression_result(self):
        scope = Scope()
        assert scope.apply(lambda s: "result") == "result"

    def test_digests_even_when_expression_raises(self):
        scope = Scope()
        scope.value = "a"
        calls = []
        scope.watch(lambda s: s.value, lambda new, old, s: calls.append(new))

        def mutate_then_fail(s):
            s.value = "b"
            raise KeyError("boom")

        with pytest.raises(KeyError):
            scope.apply(mutate_then_fail)
        assert calls == ["b"]
        assert scope.phase is None

    def test_runs_exactly_one_digest(self, monkeypatch):
        scope = Scope()
        digests = []
        original = scope.digest
        monkeypatch.setattr(scope, "digest", lambda: (digests.append(1), original())[1])
        scope.apply(lambda s: None)
        assert digests == [1]
