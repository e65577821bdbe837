"""Textual integration for watchable. Opt-in — requires textual.

Listeners that update widgets need three guards: don't touch the widget
tree while it is being rebuilt (pause) or before the app runs, ignore
NoMatches from queries for widgets that are gone, and hop to the UI thread
when the write happened on a worker thread. The helpers here wrap a
callback in those guards and register the wrapper on a Watchable.

    from watchable import textual as wtx

    wtx.add_change_listener(app, status, lambda e: app.query_one("#status").update(e.new_value))
    wtx.when(app, job, "state", "done", lambda e: app.notify("Finished"))

Both return the guarded wrapper; pass it to remove_change_listener to
unregister. A one-shot listener that fires while the app is unsafe is
still consumed.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("watchable.textual")

# Keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded listeners during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def guard(app, callback):
    """Wrap callback(event) so it is safe to run against app's widgets."""
    main = threading.get_ident()

    def _safe(event):
        try:
            callback(event)
        except NoMatches:
            logger.debug("Listener %r queried a missing widget", callback, exc_info=True)

    def _guarded(event):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, event)
        else:
            _safe(event)

    return _guarded


def add_change_listener(app, watchable, callback, *, once=False, condition=None):
    """add_change_listener() that safely bridges to Textual widgets."""
    guarded = guard(app, callback)
    watchable.add_change_listener(guarded, once=once, condition=condition)
    return guarded


def when(app, watchable, *args):
    """when() that safely bridges to Textual widgets. The callback is the last argument."""
    *condition, callback = args
    guarded = guard(app, callback)
    watchable.when(*condition, guarded)
    return guarded
