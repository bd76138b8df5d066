"""Tests for the run-later scheduler configuration."""

import asyncio

import pytest

import digestx.scheduler as _sched_mod
from digestx import Scope, SchedulerError, TurnQueue, call_later, get_scheduler, set_scheduler


def _with_scheduler(scheduler, fn):
    """Run fn with a process-wide scheduler installed, then restore."""
    old = _sched_mod._scheduler
    set_scheduler(scheduler)
    try:
        fn()
    finally:
        _sched_mod._scheduler = old


class TestSetScheduler:
    def test_default_is_none(self):
        assert get_scheduler() is None

    def test_global_scheduler_is_used(self):
        turns = TurnQueue()

        def check():
            assert get_scheduler() is turns
            ran = []
            call_later(lambda: ran.append(1))
            assert ran == []
            turns.run()
            assert ran == [1]

        _with_scheduler(turns, check)

    def test_scope_scheduler_wins_over_global(self):
        global_turns = TurnQueue()
        scope_turns = TurnQueue()

        def check():
            scope = Scope(scheduler=scope_turns)
            scope.eval_async(lambda s: None)
            assert len(scope_turns) == 1
            assert len(global_turns) == 0

        _with_scheduler(global_turns, check)

    def test_synchronous_scheduler(self):
        """A scheduler that runs immediately still flushes the queued task."""

        def check():
            scope = Scope()
            scope.value = 0
            scope.eval_async(lambda s: setattr(s, "value", 1))
            assert scope.value == 1

        _with_scheduler(lambda f: f(), check)

    def test_no_scheduler_and_no_loop_raises(self):
        with pytest.raises(SchedulerError):
            call_later(lambda: None)

    def test_uses_running_loop(self):
        async def main():
            ran = []
            call_later(lambda: ran.append(1))
            await asyncio.sleep(0)
            return ran

        assert asyncio.run(main()) == [1]


class TestTurnQueue:
    def test_fifo(self):
        turns = TurnQueue()
        order = []
        turns(lambda: order.append("a"))
        turns(lambda: order.append("b"))
        assert turns.run() == 2
        assert order == ["a", "b"]

    def test_runs_turns_queued_while_running(self):
        turns = TurnQueue()
        order = []

        def first():
            order.append("first")
            turns(lambda: order.append("second"))

        turns(first)
        assert turns.run() == 2
        assert order == ["first", "second"]
        assert len(turns) == 0

    def test_repr(self):
        turns = TurnQueue()
        turns(lambda: None)
        assert "1 pending" in repr(turns)
