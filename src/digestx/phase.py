"""Phase guard: reentrancy fence for digest and apply.

At most one phase ("digest" or "apply") is in progress per scope. The
guard is not a lock: everything runs on one thread, and the guard only
rejects structurally illegal nesting such as calling apply() from inside a
listener.
"""

from __future__ import annotations

from digestx.errors import PhaseConflictError

DIGEST = "digest"
APPLY = "apply"


class PhaseGuard:
    """Holds the name of the phase in progress, or None."""

    __slots__ = ("_current",)

    def __init__(self) -> None:
        self._current: str | None = None

    @property
    def current(self) -> str | None:
        return self._current

    def begin(self, phase: str) -> None:
        """Enter phase. Raises PhaseConflictError if one is already set."""
        if self._current is not None:
            raise PhaseConflictError(self._current)
        self._current = phase

    def clear(self) -> None:
        self._current = None

    def __repr__(self) -> str:
        return f"PhaseGuard({self._current!r})"
