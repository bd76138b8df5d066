"""Exceptions raised by the digest machinery.

Contained faults (a watcher or deferred task raising) never surface as
these; they go to the scope's error sink instead.
"""


class DigestError(Exception):
    """Base class for every error digestx raises itself."""


class PhaseConflictError(DigestError):
    """Raised when a phase is entered while another is already in progress."""

    def __init__(self, phase: str) -> None:
        self.phase = phase
        super().__init__(f"{phase} already in progress")


class NonConvergenceError(DigestError):
    """Raised when a digest is still dirty after ``ttl`` extra iterations."""

    def __init__(self, ttl: int) -> None:
        self.ttl = ttl
        super().__init__(f"digest did not converge after {ttl} iterations")


class SchedulerError(DigestError):
    """Raised when deferred work has nowhere to run."""
