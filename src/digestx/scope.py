"""Scope: the mutable state container and owner of the digest cycle.

Application code sets arbitrary attributes on a Scope and registers
watchers that observe them. A digest evaluates every watcher, calls the
listeners of those whose value changed, and repeats until a sweep finds
nothing dirty. Listeners may change state, which is why the loop repeats;
a system that keeps changing for more than DIGEST_TTL extra iterations is
reported as non-convergent instead of looping forever.

Deferred work enters the cycle two ways:
- eval_async(expr): runs expr at the start of the next digest iteration,
  scheduling a digest itself if none is in progress.
- apply_async(expr): batches expr with every other apply_async call made
  before the next turn, then runs them all inside one apply().

Usage:
    scope = Scope()
    scope.name = "ada"
    seen = []

    scope.watch(lambda s: s.name, lambda new, old, s: seen.append((new, old)))
    scope.digest()
    # seen == [("ada", "ada")]  (first call reports old == new)

    scope.apply(lambda s: setattr(s, "name", "grace"))
    # seen == [("ada", "ada"), ("grace", "ada")]
"""

from __future__ import annotations

import copy
import functools
import logging
from collections import deque
from contextlib import closing
from typing import Any, Callable, Mapping, NamedTuple

from digestx import scheduler as _scheduler
from digestx.equality import are_equal
from digestx.errors import NonConvergenceError, SchedulerError
from digestx.expression import ExpressionLike, evaluate
from digestx.phase import APPLY, DIGEST, PhaseGuard
from digestx.watcher import UNINITIALIZED, Listener, Watcher, WatcherRegistry

logger = logging.getLogger("digestx.scope")

DIGEST_TTL = 10

ErrorSink = Callable[[BaseException], None]
Deregister = Callable[[], None]


def log_error(error: BaseException) -> None:
    """Default error sink: log the fault with its traceback and carry on."""
    logger.error("Uncaught error during digest: %r", error, exc_info=error)


class AsyncTask(NamedTuple):
    scope: Scope
    expression: ExpressionLike


class Scope:
    """Watcher registry plus digest loop. Arbitrary attributes allowed."""

    def __init__(
        self,
        *,
        scheduler: _scheduler.Scheduler | None = None,
        on_error: ErrorSink | None = None,
    ) -> None:
        self._watchers = WatcherRegistry()
        self._last_dirty_watcher: Watcher | None = None
        self._phase = PhaseGuard()
        self._async_queue: deque[AsyncTask] = deque()
        self._apply_async_queue: deque[Callable[[], None]] = deque()
        self._apply_async_scheduled = False
        self._scheduler = scheduler
        self._on_error = on_error if on_error is not None else log_error

    # --- Watchers ---

    def watch(
        self,
        expression: ExpressionLike,
        listener: Listener | None = None,
        deep: bool = False,
    ) -> Deregister:
        """Call listener(new, old, scope) whenever expression's value changes.

        deep=True compares structurally and snapshots the value with
        copy.deepcopy, so in-place mutation of a watched list or dict is
        detected. Returns a function that removes the watcher; calling it
        again is a no-op.
        """
        watcher = Watcher(expression, listener, deep)
        self._watchers.add(watcher)
        self._last_dirty_watcher = None

        def _deregister() -> None:
            if self._watchers.remove(watcher):
                self._last_dirty_watcher = None

        return _deregister

    # --- Digest ---

    def digest(self) -> None:
        """Run watchers until none is dirty and no eval_async work is queued.

        Raises NonConvergenceError when that takes more than DIGEST_TTL
        extra iterations, and PhaseConflictError when called from inside a
        digest or apply.
        """
        ttl = DIGEST_TTL
        self._last_dirty_watcher = None
        self.begin_phase(DIGEST)
        logger.debug("Digest started with %d watchers", len(self._watchers))
        try:
            while True:
                self._drain_async_queue()
                dirty = self._digest_once()
                if not dirty and not self._async_queue:
                    break
                if not ttl:
                    raise NonConvergenceError(DIGEST_TTL)
                ttl -= 1
        finally:
            self.clear_phase()
        logger.debug("Digest converged after %d iterations", DIGEST_TTL - ttl + 1)

    def _drain_async_queue(self) -> None:
        while self._async_queue:
            task = self._async_queue.popleft()
            try:
                task.scope.eval(task.expression)
            except Exception as e:
                self._on_error(e)

    def _digest_once(self) -> bool:
        """One sweep over all watchers. Returns whether any was dirty."""
        dirty = False
        with closing(self._watchers.sweep()) as watchers:
            for watcher in watchers:
                try:
                    new_value = evaluate(watcher.expression, self)
                    old_value = watcher.last
                    if not are_equal(new_value, old_value, watcher.deep):
                        self._last_dirty_watcher = watcher
                        watcher.last = copy.deepcopy(new_value) if watcher.deep else new_value
                        watcher.listener(
                            new_value,
                            new_value if old_value is UNINITIALIZED else old_value,
                            self,
                        )
                        dirty = True
                    elif self._last_dirty_watcher is watcher:
                        # Everything after this watcher was clean last time round.
                        break
                except Exception as e:
                    self._on_error(e)
        return dirty

    # --- Evaluation ---

    def eval(self, expression: ExpressionLike, locals: Mapping[str, Any] | None = None) -> Any:
        """Evaluate expression against this scope right now and return the result."""
        return evaluate(expression, self, locals)

    def eval_async(self, expression: ExpressionLike) -> None:
        """Evaluate expression at the start of the next digest iteration.

        Outside any digest or apply, a digest is scheduled on a later turn
        so the work still runs if nothing else triggers one.
        """
        needs_digest = self._phase.current is None and not self._async_queue
        self._async_queue.append(AsyncTask(self, expression))
        if needs_digest:
            try:
                self._call_later(self._flush_async_queue)
            except SchedulerError:
                # Unscheduled work must not block the next call from scheduling.
                self._async_queue.pop()
                raise

    def _flush_async_queue(self) -> None:
        # An intervening digest may already have drained the queue.
        if self._async_queue:
            logger.debug("Running scheduled digest for %d async tasks", len(self._async_queue))
            self.digest()

    def apply(self, expression: ExpressionLike) -> Any:
        """Evaluate expression inside the apply phase, then digest.

        The digest runs even if expression raises; the exception then
        propagates to the caller.
        """
        self.begin_phase(APPLY)
        try:
            return self.eval(expression)
        finally:
            self.clear_phase()
            self.digest()

    def apply_async(self, expression: ExpressionLike) -> None:
        """Queue expression for a batched apply on a later turn.

        Every apply_async call made before that turn runs in the same
        apply, so they cost one digest in total.
        """
        self._apply_async_queue.append(functools.partial(self.eval, expression))
        if not self._apply_async_scheduled:
            self._apply_async_scheduled = True
            try:
                self._call_later(self._flush_apply_async_queue)
            except SchedulerError:
                self._apply_async_scheduled = False
                self._apply_async_queue.pop()
                raise

    def _flush_apply_async_queue(self) -> None:
        self._apply_async_scheduled = False
        logger.debug("Applying %d batched expressions", len(self._apply_async_queue))
        self.apply(self._drain_apply_async_queue)

    def _drain_apply_async_queue(self, scope: Scope) -> None:
        while self._apply_async_queue:
            thunk = self._apply_async_queue.popleft()
            try:
                thunk()
            except Exception as e:
                self._on_error(e)

    # --- Phase ---

    @property
    def phase(self) -> str | None:
        """Name of the phase in progress ("digest" or "apply"), or None."""
        return self._phase.current

    def begin_phase(self, phase: str) -> None:
        self._phase.begin(phase)

    def clear_phase(self) -> None:
        self._phase.clear()

    def _call_later(self, callback: Callable[[], None]) -> None:
        if self._scheduler is not None:
            self._scheduler(callback)
        else:
            _scheduler.call_later(callback)

    def __repr__(self) -> str:
        return f"Scope({len(self._watchers)} watchers, phase={self._phase.current!r})"
