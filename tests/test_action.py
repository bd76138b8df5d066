"""Tests for action decorator and transaction context manager."""

import pytest

from digestx import PhaseConflictError, Scope, action, transaction


def _pair_log(scope):
    scope.a = 0
    scope.b = 0
    log = []
    scope.watch(lambda s: (s.a, s.b), lambda new, old, s: log.append(new), deep=True)
    scope.digest()
    return log


class TestAction:
    def test_batches_updates(self):
        scope = Scope()
        log = _pair_log(scope)
        assert log == [(0, 0)]

        @action(scope)
        def update_both():
            scope.a = 1
            scope.b = 2

        update_both()
        # Should see (1, 2) not intermediate (1, 0)
        assert log == [(0, 0), (1, 2)]

    def test_nested_actions_conflict(self):
        scope = Scope()

        @action(scope)
        def inner():
            pass

        @action(scope)
        def outer():
            inner()

        with pytest.raises(PhaseConflictError):
            outer()
        assert scope.phase is None

    def test_preserves_return_value_and_name(self):
        scope = Scope()

        @action(scope)
        def compute(x, y=1):
            return x + y

        assert compute(41) == 42
        assert compute.__name__ == "compute"


class TestTransaction:
    def test_batches_updates(self):
        scope = Scope()
        log = _pair_log(scope)

        with transaction(scope) as s:
            assert s is scope
            assert scope.phase == "apply"
            s.a = 10
            s.b = 20

        assert log == [(0, 0), (10, 20)]
        assert scope.phase is None

    def test_digests_after_exception(self):
        scope = Scope()
        log = _pair_log(scope)

        with pytest.raises(RuntimeError):
            with transaction(scope):
                scope.a = 5
                raise RuntimeError("oops")

        assert log == [(0, 0), (5, 0)]
        assert scope.phase is None

    def test_nested_transactions_conflict(self):
        scope = Scope()
        with pytest.raises(PhaseConflictError):
            with transaction(scope):
                with transaction(scope):
                    pass
        assert scope.phase is None
