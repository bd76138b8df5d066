"""Actions and transactions: batched state mutations followed by one digest.

Wrapping mutations in an @action or `with transaction()` runs them inside
the scope's apply phase, so watchers see the final state once, after all
of the mutations, rather than reacting to intermediate states.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, ParamSpec, TypeVar

from digestx.phase import APPLY

if TYPE_CHECKING:
    from digestx.scope import Scope

P = ParamSpec("P")
R = TypeVar("R")


def action(scope: Scope) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator factory: run the decorated function through scope.apply().

    Usage:
        scope = Scope()

        @action(scope)
        def swap():
            scope.a, scope.b = scope.b, scope.a
            # watchers on a and b run once, after both are set
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return scope.apply(lambda _scope: fn(*args, **kwargs))

        return wrapper

    return decorator


@contextmanager
def transaction(scope: Scope) -> Iterator[Scope]:
    """Context manager form of scope.apply().

    Usage:
        with transaction(scope) as s:
            s.first = "Ada"
            s.last = "Lovelace"
            # watchers run here, after both are set

    Transactions do not nest: entering one inside a digest or apply raises
    PhaseConflictError.
    """
    scope.begin_phase(APPLY)
    try:
        yield scope
    finally:
        scope.clear_phase()
        scope.digest()
