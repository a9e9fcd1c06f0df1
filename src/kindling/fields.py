"""Field declarations — the class-body surface over the registry.

    class Greeting(Component):
        name = prop()
        shout = prop(default=False)
        visits = state(default=0)
        text = computed()
        on_greeted = event()

        @react(to=["name", "shout"])
        def put_text(self):
            text = f"Hello, {self.name}"
            self.put_computed(text=text.upper() if self.shout else text)

Fields read like attributes. They are written only through update() for
props, put_state() for state and put_computed() for computed fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, TypeVar

from kindling.errors import UnsetFieldError
from kindling.registry import NO_DEFAULT, FieldKind, flatten_names

F = TypeVar("F", bound=Callable[..., Any])

_REACT_ATTR = "__kindling_react__"


class Field:
    """Data descriptor backed by the owning component's field values."""

    __slots__ = ("name", "default")

    kind: FieldKind
    writer: str

    def __init__(self, default: Any = NO_DEFAULT) -> None:
        self.name: str | None = None
        self.default = default

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance._values[self.name]
        except KeyError:
            raise UnsetFieldError(self.kind.value, self.name) from None

    def __set__(self, instance, value) -> None:
        raise AttributeError(
            f"can't assign {self.kind.value} {self.name!r} directly; use {self.writer}()"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Prop(Field):
    __slots__ = ()
    kind = FieldKind.PROP
    writer = "update"


class State(Field):
    __slots__ = ()
    kind = FieldKind.STATE
    writer = "put_state"


class Computed(Field):
    __slots__ = ()
    kind = FieldKind.COMPUTED
    writer = "put_computed"


def prop(*, default: Any = NO_DEFAULT) -> Prop:
    """Declare a prop. Without a default the prop is required.

    A callable default is evaluated at mount; None is a valid default.
    """
    return Prop(default)


def state(*, default: Any = NO_DEFAULT) -> State:
    """Declare a state field. With a default it is assigned at mount."""
    return State(default)


def computed() -> Computed:
    """Declare a computed field, usually written from reactive functions."""
    return Computed()


def event() -> Prop:
    """Declare an event prop: optional, defaulting to no listener.

    Its value is where Component.emit() sends the event: a Mailbox, a
    (ComponentClass, id) address, or either of those plus a custom name.
    """
    return Prop(None)


@dataclass(frozen=True)
class ReactSpec:
    to: tuple[str, ...]
    repeats: bool = False


def react(to: str | Iterable, *, repeats: bool = False) -> Callable[[F], F]:
    """Mark a component method as a reactive function.

    It runs whenever one of the names in `to` changes: props, state, or other
    reactive functions (it then runs after them). Nested lists are flattened.

    repeats=True lets the function run again in a follow-up wave of the same
    update, disabling loop detection for it. Make sure it converges.
    """
    spec = ReactSpec(flatten_names(to), repeats)

    def decorator(fn: F) -> F:
        setattr(fn, _REACT_ATTR, spec)
        return fn

    return decorator


def reactive_spec(obj: object) -> ReactSpec | None:
    return getattr(obj, _REACT_ATTR, None)
