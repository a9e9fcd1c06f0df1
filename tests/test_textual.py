"""Tests for kindling.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from kindling import Component, send_message, state
from kindling import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []
        self._call_later_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)

    def call_later(self, fn, *args):
        self._call_later_log.append((fn, args))


class Counter(Component):
    count = state(default=0)

    def __init__(self, *args, **kwargs):
        self.messages = []
        super().__init__(*args, **kwargs)

    def handle_message(self, name, source, payload):
        self.messages.append(name)
        self.put_state(count=self.count + payload)


class TestBind:
    def test_fires_when_safe(self):
        app = _MockApp()
        c = Counter()
        effects = []
        stx.bind(app, c, lambda comp: effects.append(comp.count))
        c.put_state(count=2)
        assert effects == [2]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        c = Counter()
        effects = []
        stx.bind(app, c, lambda comp: effects.append(comp.count))
        c.put_state(count=2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        c = Counter()
        effects = []
        stx.bind(app, c, lambda comp: effects.append(comp.count))
        with stx.pause(app):
            c.put_state(count=2)
        assert effects == []

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        c = Counter()

        def _raise_nomatch(comp):
            raise NoMatches("CountLabel")

        stx.bind(app, c, _raise_nomatch)
        c.put_state(count=2)
        assert c.count == 2

    def test_propagates_real_errors(self):
        app = _MockApp()
        c = Counter()

        def _raise_value_error(comp):
            raise ValueError("boom")

        stx.bind(app, c, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            c.put_state(count=2)

    def test_dispose_stops(self):
        app = _MockApp()
        c = Counter()
        effects = []
        dispose = stx.bind(app, c, lambda comp: effects.append(comp.count))
        c.put_state(count=1)
        dispose()
        c.put_state(count=2)
        assert effects == [1]

    def test_thread_marshal(self):
        """Settles on a background thread use call_from_thread."""
        app = _MockApp()
        c = Counter()
        effects = []
        stx.bind(app, c, lambda comp: effects.append(comp.count))

        t = threading.Thread(target=lambda: c.put_state(count=2))
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1


class TestMailbox:
    def test_drains_on_app_loop(self):
        app = _MockApp()
        c = Counter()
        stx.mailbox(app, c)
        send_message(c.mailbox, "add", 3)
        assert c.messages == []
        assert len(app._call_later_log) == 1

        fn, args = app._call_later_log[0]
        fn(*args)
        assert c.messages == ["add"]
        assert c.count == 3

    def test_background_post_uses_call_from_thread(self):
        app = _MockApp()
        c = Counter()
        stx.mailbox(app, c)
        t = threading.Thread(target=lambda: send_message(c.mailbox, "add", 1))
        t.start()
        t.join()
        assert len(app._call_from_thread_log) == 1
        assert c.count == 1


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
