"""Textual integration for kindling. Opt-in — requires textual.

Bridges components to a Textual app: re-render widgets when a component
settles, and deliver component messages on the app's event loop.

    counter = Counter()
    stx.bind(app, counter, lambda c: app.query_one("#count", Label).update(str(c.count)))
    stx.mailbox(app, counter)  # messages to counter now drain on the app loop

Textual coupling is isolated in this module; the rest of kindling stays agnostic.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from kindling.events import Mailbox

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, component, effect):
    """Run effect(component) each time the component settles, when it is safe to.

    Skips while the app is paused or not running, swallows NoMatches from
    widget queries, and marshals settles from other threads through
    call_from_thread. Returns the disposer.
    """
    _main = threading.get_ident()

    def _guarded(settled):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, settled)
        else:
            _safe(settled)

    def _safe(settled):
        try:
            effect(settled)
        except NoMatches:
            pass

    return component.subscribe(_guarded)


def mailbox(app, owner) -> Mailbox:
    """Schedule drains of owner's mailbox on the app's event loop.

    Posts from the app thread drain via call_later; posts from any other
    thread go through call_from_thread.
    """
    _main = threading.get_ident()

    def _schedule(drain):
        if threading.get_ident() != _main:
            app.call_from_thread(drain)
        else:
            app.call_later(drain)

    box = owner.mailbox
    box.schedule = _schedule
    return box
