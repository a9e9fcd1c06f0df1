"""Event messages — an out-of-band channel between components and hosts.

Messages never touch props or state. send_message() posts a Message to a
destination; it is delivered later, when the destination's mailbox drains,
to the receiver's handle_message(name, source, payload).

Destinations come in two shapes:
- a Mailbox, delivering to whatever owns it (a component, a host view)
- (ComponentClass, id), delivering to the mounted component with that id

Usage:
    send_message(view.mailbox, "selected", {"profile_id": 123})
    send_message((ProfileCard, "card-1"), "refresh", None, source="sidebar")
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from kindling.errors import ValidationError

logger = logging.getLogger("kindling.events")

Scheduler = Callable[[Callable[[], int]], Any]


@dataclass(frozen=True)
class Message:
    name: str
    payload: Any = None
    source: Any = None


class Mailbox:
    """FIFO of messages for one owner.

    Without a scheduler the host drains it. With one, every post asks the
    scheduler to call drain() later (e.g. on the UI event loop).
    """

    __slots__ = ("owner", "schedule", "_queue", "_draining")

    def __init__(self, owner, schedule: Scheduler | None = None) -> None:
        self.owner = owner
        self.schedule = schedule
        self._queue: deque[Message] = deque()
        self._draining = False

    def post(self, message: Message) -> None:
        self._queue.append(message)
        if self.schedule is not None and not self._draining:
            self.schedule(self.drain)

    def drain(self) -> int:
        """Deliver every queued message, including ones posted while draining."""
        if self._draining:
            return 0
        delivered = 0
        self._draining = True
        try:
            while self._queue:
                message = self._queue.popleft()
                if not getattr(self.owner, "mounted", True):
                    logger.warning("dropping message %r: %r is unmounted", message.name, self.owner)
                    continue
                self.owner.deliver_message(message)
                delivered += 1
        finally:
            self._draining = False
        return delivered

    def __len__(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"Mailbox({self.owner!r}, queued={len(self._queue)})"


# Mounted components with an id, by (class, id).
_directory: dict[tuple[type, Hashable], Any] = {}


def register(component) -> None:
    key = (type(component), component.id)
    existing = _directory.get(key)
    if existing is not None and existing is not component:
        raise ValidationError(f"a {key[0].__name__} with id {key[1]!r} is already mounted")
    _directory[key] = component


def unregister(component) -> None:
    key = (type(component), component.id)
    if _directory.get(key) is component:
        del _directory[key]


def lookup(cls: type, id: Hashable):
    return _directory.get((cls, id))


def send_message(destination, name: str, payload: Any = None, *, source: Any = None) -> Message:
    """Post a message. Returns it. Never delivers synchronously."""
    message = Message(name, payload, source)
    mailbox = _resolve(destination)
    if mailbox is None:
        logger.warning("dropping message %r: nothing mounted at %r", name, destination)
        return message
    mailbox.post(message)
    return message


def _resolve(destination) -> Mailbox | None:
    if isinstance(destination, Mailbox):
        return destination
    if isinstance(destination, tuple) and len(destination) == 2 and isinstance(destination[0], type):
        component = lookup(*destination)
        return component.mailbox if component is not None else None
    raise TypeError(f"expected a Mailbox or (ComponentClass, id) destination, got {destination!r}")
