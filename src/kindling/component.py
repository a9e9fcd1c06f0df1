"""Component — a reactive component instance and its lifecycle hooks.

Subclassing Component declares a component type: its fields and reactive
functions are collected into a closed Schema shared by every instance.
Instantiating it mounts a component; update() feeds it props from the host,
put_state() changes its state, and every reactive function affected by a
change has run, once and in dependency order, before those calls return.

Usage:
    class Counter(Component):
        step = prop(default=1)
        count = state(default=0)
        doubled = computed()

        @react(to="count")
        def put_doubled(self):
            self.put_computed(doubled=self.count * 2)

    counter = Counter()
    counter.put_state(count=5)
    counter.doubled  # 10
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, ClassVar, Hashable, Iterator, Mapping, TypeVar

from kindling import config, events, transaction, validation
from kindling._anchor import TransactionState
from kindling.errors import ComponentUnmountedError, ComputedWriteError, DeclarationError
from kindling.events import Mailbox, Message
from kindling.fields import Field, reactive_spec
from kindling.registry import FieldKind, Schema

C = TypeVar("C", bound="Component")
F = TypeVar("F", bound=Callable[..., Any])

Disposer = Callable[[], None]


class Component:
    """Base class for reactive components."""

    __slots__ = (
        "id",
        "mailbox",
        "_values",
        "_tx",
        "_runtime_checks",
        "_mounted",
        "_subscribers",
        "_deferred_mount",
        "__weakref__",
    )

    schema: ClassVar[Schema] = Schema("Component").close_graph()
    # Run reactive functions for state defaults when mounting.
    react_on_mount: ClassVar[bool] = True
    # Only allow put_computed() from inside this component's reactive functions.
    restrict_computed_writes: ClassVar[bool] = False

    def __init_subclass__(
        cls,
        *,
        react_on_mount: bool | None = None,
        restrict_computed_writes: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if react_on_mount is not None:
            cls.react_on_mount = react_on_mount
        if restrict_computed_writes is not None:
            cls.restrict_computed_writes = restrict_computed_writes

        parents = [base.schema for base in cls.__bases__ if issubclass(base, Component)]
        schema = Schema.inherit(parents, cls.__qualname__)
        # With several bases, an inherited reactive function runs the
        # implementation the MRO picks.
        for name in schema.names(FieldKind.REACT):
            if name not in vars(cls):
                fn = _resolve(cls, name)
                if callable(fn) and fn is not schema.reactive(name).fn:
                    schema.rebind(name, fn)
        for name, value in vars(cls).items():
            if isinstance(value, Field):
                _ensure_not_reserved(cls, name)
                schema.declare_field(name, value.kind, default=value.default)
                continue
            spec = reactive_spec(value)
            if spec is not None:
                _ensure_not_reserved(cls, name)
                schema.declare_reactive(name, spec.to, value, allow_repeat=spec.repeats)
            elif callable(value) and schema.is_reactive(name):
                schema.rebind(name, value)
        cls.schema = schema.close_graph()

    # --- Mount ---

    def __init__(self, id: Hashable | None = None, *, runtime_checks: bool | None = None) -> None:
        self.id = id
        self.mailbox = Mailbox(self)
        self._values: dict[str, Any] = {}
        self._tx = TransactionState()
        self._runtime_checks = config.runtime_checks if runtime_checks is None else bool(runtime_checks)
        self._mounted = True
        self._subscribers: list[Callable[[Component], Any]] = []
        self._deferred_mount: tuple[str, ...] = ()
        if id is not None:
            events.register(self)
        self._initialize()

    def _initialize(self) -> None:
        """Assign prop defaults, then state defaults, and run the mount wave.

        Defaults are evaluated now, not at declaration. When required props
        are still missing, the mount wave waits for the first update().
        """
        schema = type(self).schema
        for decl in schema.fields(FieldKind.PROP):
            if decl.has_default:
                self._values[decl.name] = decl.default_value()

        initial = []
        for decl in schema.fields(FieldKind.STATE):
            if decl.has_default:
                self._values[decl.name] = decl.default_value()
                initial.append(decl.name)

        if not self.react_on_mount or not initial:
            return
        if schema.required_props():
            self._deferred_mount = tuple(initial)
        else:
            transaction.propagate(self, initial)

    @property
    def mounted(self) -> bool:
        return self._mounted

    def unmount(self) -> None:
        """Detach from the message directory and drop subscribers."""
        if not self._mounted:
            return
        if self.id is not None:
            events.unregister(self)
        self._subscribers.clear()
        self._mounted = False

    def _ensure_mounted(self) -> None:
        if not self._mounted:
            raise ComponentUnmountedError(self)

    # --- Updates ---

    def update(self: C, props: Mapping[str, Any] | None = None, /, **changes: Any) -> C:
        """Merge new prop values from the host and react to the ones that changed."""
        self._ensure_mounted()
        changes = {**(props or {}), **changes}
        validation.ensure_keys_declared(self, FieldKind.PROP, changes)
        changed = [
            name
            for name, value in changes.items()
            if name not in self._values or _differs(self._values[name], value)
        ]

        tx = self._tx
        if tx.running is not None:
            transaction.write(self, changes, changed)
            return self

        if tx.in_transaction:
            # Inside a batch opened by the host: still the first external
            # update, so check props and hand the mount wave to the batch.
            transaction.write(self, changes, changed)
            validation.ensure_required_present(self, FieldKind.PROP)
            for name in self._deferred_mount:
                tx.pending.setdefault(name, self._values.get(name))
            self._deferred_mount = ()
            return self

        self._values.update(changes)
        validation.ensure_required_present(self, FieldKind.PROP)
        changed = [*self._deferred_mount, *changed]
        self._deferred_mount = ()
        if changed:
            transaction.propagate(self, changed)
            self._settle()
        return self

    def put_state(self: C, changes: Mapping[str, Any] | None = None, /, **more: Any) -> C:
        """Change state fields.

        From outside a reactive function this runs every affected reactive
        function before returning. From inside one, the values are applied at
        once but their reactions run in the next wave.
        """
        self._ensure_mounted()
        changes = {**(changes or {}), **more}
        external = not self._tx.in_transaction
        transaction.put_state(self, changes)
        if external and changes:
            self._settle()
        return self

    def put_computed(self: C, changes: Mapping[str, Any] | None = None, /, **more: Any) -> C:
        """Change computed fields. Nothing reacts to computed fields."""
        self._ensure_mounted()
        changes = {**(changes or {}), **more}
        for name in changes:
            validation.ensure_key_declared(self, FieldKind.COMPUTED, name)
            if self.restrict_computed_writes and self._tx.running is None:
                raise ComputedWriteError(name)
        self._values.update(changes)
        if not self._tx.in_transaction and changes:
            self._settle()
        return self

    @contextmanager
    def batch(self: C) -> Iterator[C]:
        """Collect every write in the block into a single propagation chain."""
        self._ensure_mounted()
        with transaction.batch(self) as outermost:
            yield self
        if outermost:
            self._settle()

    def snapshot(self) -> dict[str, Any]:
        """Copy of the current field values."""
        return dict(self._values)

    # --- Settle listeners ---

    def subscribe(self, callback: Callable[[Component], Any]) -> Disposer:
        """Call callback(component) after every externally started update settles."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def _settle(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    # --- Messages ---

    def deliver_message(self, message: Message) -> Any:
        """Hand a message to handle_message(), bypassing props and state."""
        self._ensure_mounted()
        return self.handle_message(message.name, message.source, message.payload)

    def handle_message(self, name: str, source: Any, payload: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not handle message {name!r}")

    def emit(self: C, event: str, payload: Any = None) -> C:
        """Send payload to whatever is listening on the event prop.

        The prop may hold None (nobody listening), a destination, or a
        destination paired with a custom message name: (mailbox, name) or
        (ComponentClass, id, name).
        """
        self._ensure_mounted()
        validation.ensure_key_declared(self, FieldKind.PROP, event)
        destination = self._values.get(event)
        if destination is None:
            return self

        name = event
        if isinstance(destination, tuple):
            if len(destination) == 2 and isinstance(destination[0], Mailbox):
                destination, name = destination
            elif len(destination) == 3:
                name = destination[2]
                destination = destination[:2]
        events.send_message(destination, name, payload, source=(type(self), self.id))
        return self

    def __repr__(self) -> str:
        ident = "" if self.id is None else f"{self.id!r}, "
        return f"{type(self).__name__}({ident}{self._values!r})"


def action(fn: F) -> F:
    """Decorator for component methods: batch every write the method makes.

    Usage:
        class Name(Component):
            first = state(default="")
            last = state(default="")

            @action
            def rename(self, first, last):
                self.put_state(first=first)
                self.put_state(last=last)
                # reactive functions see both changes at once
    """

    @functools.wraps(fn)
    def wrapper(self, *args: Any, **kwargs: Any):
        with self.batch():
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _differs(old: Any, new: Any) -> bool:
    if old is new:
        return False
    try:
        return bool(old != new)
    except (TypeError, ValueError):
        # No single truth value (array-like comparisons): count it as changed.
        return True


def _resolve(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return None


def _ensure_not_reserved(cls: type, name: str) -> None:
    if hasattr(Component, name):
        raise DeclarationError(f"{cls.__qualname__}.{name}: {name!r} is reserved by Component")
