"""Tests for messages, mailboxes, addressed delivery and emit()."""

import logging

import pytest

from kindling import Component, Mailbox, Message, ValidationError, event, send_message, state
from kindling import events


class Inbox(Component):
    unread = state(default=0)

    def __init__(self, *args, **kwargs):
        self.received = []
        super().__init__(*args, **kwargs)

    def handle_message(self, name, source, payload):
        self.received.append((name, source, payload))
        self.put_state(unread=self.unread + 1)


class Button(Component):
    on_click = event()


class TestMessage:
    def test_frozen(self):
        m = Message("saved", {"id": 1})
        assert m.source is None
        with pytest.raises(AttributeError):
            m.name = "other"


class TestMailbox:
    def test_delivery_waits_for_drain(self):
        inbox = Inbox()
        send_message(inbox.mailbox, "hello", 1, source="test")
        assert inbox.received == []
        assert len(inbox.mailbox) == 1

        assert inbox.mailbox.drain() == 1
        assert inbox.received == [("hello", "test", 1)]
        assert inbox.unread == 1

    def test_fifo(self):
        inbox = Inbox()
        for n in range(3):
            send_message(inbox.mailbox, "n", n)
        inbox.mailbox.drain()
        assert [payload for _, _, payload in inbox.received] == [0, 1, 2]

    def test_scheduler_requests_drain(self):
        inbox = Inbox()
        scheduled = []
        box = Mailbox(inbox, schedule=scheduled.append)
        box.post(Message("ping"))
        assert scheduled == [box.drain]
        scheduled[0]()
        assert inbox.received == [("ping", None, None)]

    def test_unmounted_owner_drops(self, caplog):
        inbox = Inbox()
        send_message(inbox.mailbox, "late")
        inbox.unmount()
        with caplog.at_level(logging.WARNING, logger="kindling.events"):
            assert inbox.mailbox.drain() == 0
        assert "unmounted" in caplog.text

    def test_default_handler_raises(self):
        b = Button()
        send_message(b.mailbox, "unexpected")
        with pytest.raises(NotImplementedError, match="'unexpected'"):
            b.mailbox.drain()


class TestAddressed:
    def test_send_to_mounted_component(self):
        inbox = Inbox("inbox-addressed")
        try:
            send_message((Inbox, "inbox-addressed"), "refresh", None, source="sidebar")
            inbox.mailbox.drain()
            assert inbox.received == [("refresh", "sidebar", None)]
        finally:
            inbox.unmount()

    def test_unknown_address_is_dropped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="kindling.events"):
            message = send_message((Inbox, "nobody"), "refresh")
        assert message == Message("refresh")
        assert "nothing mounted" in caplog.text

    def test_unsupported_destination(self):
        with pytest.raises(TypeError, match="Mailbox"):
            send_message("somewhere", "refresh")

    def test_duplicate_id(self):
        first = Inbox("inbox-dup")
        try:
            with pytest.raises(ValidationError, match="already mounted"):
                Inbox("inbox-dup")
        finally:
            first.unmount()
        second = Inbox("inbox-dup")
        assert events.lookup(Inbox, "inbox-dup") is second
        second.unmount()
        assert events.lookup(Inbox, "inbox-dup") is None


class TestEmit:
    def test_no_listener(self):
        b = Button()
        assert b.emit("on_click", 1) is b

    def test_to_mailbox(self):
        inbox = Inbox()
        b = Button("b1")
        try:
            b.update(on_click=inbox.mailbox)
            b.emit("on_click", {"x": 1})
            inbox.mailbox.drain()
            assert inbox.received == [("on_click", (Button, "b1"), {"x": 1})]
        finally:
            b.unmount()

    def test_custom_name(self):
        inbox = Inbox()
        b = Button()
        b.update(on_click=(inbox.mailbox, "clicked"))
        b.emit("on_click")
        inbox.mailbox.drain()
        assert inbox.received == [("clicked", (Button, None), None)]

    def test_addressed_with_custom_name(self):
        inbox = Inbox("inbox-emit")
        try:
            b = Button()
            b.update(on_click=(Inbox, "inbox-emit", "clicked"))
            b.emit("on_click", 5)
            inbox.mailbox.drain()
            assert inbox.received == [("clicked", (Button, None), 5)]
        finally:
            inbox.unmount()

    def test_undeclared_event(self):
        b = Button(runtime_checks=True)
        with pytest.raises(ValidationError, match="on_hover"):
            b.emit("on_hover")
