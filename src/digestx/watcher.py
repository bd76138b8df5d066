"""Watchers and the registry that orders them.

A Watcher pairs a watch expression with a listener and remembers the last
value the expression produced. The registry keeps watchers in registration
order and stays consistent while a sweep is walking it: listeners may add
watchers (reached later in the same sweep) or remove any watcher, including
the one currently running.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

from digestx.expression import ExpressionLike

Listener = Callable[[Any, Any, Any], None]


class _Uninitialized:
    """Marker for a watcher that has never been evaluated."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNINITIALIZED"


UNINITIALIZED = _Uninitialized()


def noop_listener(new_value, old_value, scope) -> None:
    pass


class Watcher:
    """One observation: expression, listener, equality mode, last value."""

    __slots__ = ("expression", "listener", "deep", "last")

    def __init__(
        self,
        expression: ExpressionLike,
        listener: Listener | None = None,
        deep: bool = False,
    ) -> None:
        self.expression = expression
        self.listener = listener if listener is not None else noop_listener
        self.deep = deep
        self.last: Any = UNINITIALIZED

    def __repr__(self) -> str:
        name = getattr(self.expression, "__name__", type(self.expression).__name__)
        mode = "deep" if self.deep else "shallow"
        return f"Watcher({name}, {mode}, last={self.last!r})"


class WatcherRegistry:
    """Registration-ordered watcher list with a removal-aware sweep cursor."""

    __slots__ = ("_watchers", "_cursor")

    def __init__(self) -> None:
        self._watchers: list[Watcher] = []
        # Index of the watcher the current sweep is visiting; -1 when idle.
        self._cursor = -1

    def add(self, watcher: Watcher) -> None:
        self._watchers.append(watcher)

    def remove(self, watcher: Watcher) -> bool:
        """Remove watcher if present. Returns whether anything was removed."""
        for index, candidate in enumerate(self._watchers):
            if candidate is watcher:
                break
        else:
            return False

        del self._watchers[index]
        if index <= self._cursor:
            self._cursor -= 1
        return True

    def sweep(self) -> Iterator[Watcher]:
        """Yield every watcher once, in registration order.

        Watchers appended during the sweep are yielded too. Removing a
        watcher never causes another one to be skipped or yielded twice.
        """
        self._cursor = 0
        try:
            while self._cursor < len(self._watchers):
                yield self._watchers[self._cursor]
                self._cursor += 1
        finally:
            self._cursor = -1

    def __contains__(self, watcher: object) -> bool:
        return any(candidate is watcher for candidate in self._watchers)

    def __len__(self) -> int:
        return len(self._watchers)

    def __iter__(self) -> Iterator[Watcher]:
        return iter(list(self._watchers))

    def __repr__(self) -> str:
        return f"WatcherRegistry({len(self._watchers)} watchers)"
