"""Textual integration for digestx. Opt-in, requires textual.

Bridges a Scope to a running Textual app: deferred digests run on the
app's message loop, and watcher listeners that touch widgets are guarded
against firing while the widget tree is being rebuilt.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Apps whose guarded watchers are muted, by id(app). Nothing is stored on the app.
_muted_apps: set[int] = set()


@contextmanager
def pause(app):
    """Mute the app's guarded watchers while its widgets are swapped out.

    Digests inside the block still record new values, so changes seen while
    paused are not reported once the block exits.
    """
    app_id = id(app)
    _muted_apps.add(app_id)
    try:
        yield
    finally:
        _muted_apps.discard(app_id)


def is_safe(app) -> bool:
    """Whether guarded listeners may run: the app is running and not paused."""
    return app.is_running and id(app) not in _muted_apps


def scheduler(app):
    """Run-later callable for Scope(scheduler=...) backed by the app's loop.

    Callbacks scheduled from the thread that created the scheduler go
    through app.call_later; callbacks from any other thread are marshaled
    with app.call_from_thread.
    """
    _main = threading.get_ident()

    def _schedule(callback):
        if threading.get_ident() != _main:
            app.call_from_thread(callback)
        else:
            app.call_later(callback)

    return _schedule


def watch(app, scope, expression, listener, *, deep=False):
    """scope.watch() with a listener that is safe to point at widgets.

    The listener is skipped while the app is not running or is paused, and
    NoMatches from widget queries is swallowed. The watched value is still
    recorded, so a skipped change is not replayed later.
    """

    def _guarded(new_value, old_value, scope):
        if not is_safe(app):
            return
        try:
            listener(new_value, old_value, scope)
        except NoMatches:
            pass

    return scope.watch(expression, _guarded, deep)
