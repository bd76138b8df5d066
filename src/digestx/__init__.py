"""digestx: dirty-checking change detection with a digest loop for Python."""

from importlib.metadata import version as _version

__version__ = _version("digestx")

from digestx.errors import DigestError, NonConvergenceError, PhaseConflictError, SchedulerError
from digestx.equality import are_equal, deep_equal
from digestx.expression import Expression, evaluate
from digestx.watcher import UNINITIALIZED, Watcher
from digestx.scope import DIGEST_TTL, Scope
from digestx.action import action, transaction
from digestx.scheduler import TurnQueue, call_later, get_scheduler, set_scheduler
# textual NOT auto-imported, opt-in only

__all__ = [
    "Scope",
    "DIGEST_TTL",
    "Watcher",
    "UNINITIALIZED",
    "Expression",
    "evaluate",
    "are_equal",
    "deep_equal",
    "action",
    "transaction",
    "set_scheduler",
    "get_scheduler",
    "call_later",
    "TurnQueue",
    "DigestError",
    "NonConvergenceError",
    "PhaseConflictError",
    "SchedulerError",
]
