"""Field registry — the per-component-type schema.

A Schema collects prop, state and computed field declarations plus reactive
function declarations, then closes the graph: every prop and state field
learns which reactive functions it triggers. A closed Schema is shared by
every instance of its component type and never changes afterwards.

Usage:
    schema = Schema("Counter")
    schema.declare_field("count", FieldKind.STATE, default=0)
    schema.declare_field("doubled", FieldKind.COMPUTED)
    schema.declare_reactive("put_doubled", ["count"], put_doubled)
    schema.close_graph()

    schema.triggers("count")  # ("put_doubled",)
"""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from kindling.errors import (
    DeclarationError,
    DependencyCycleError,
    DuplicateFieldError,
    SelfDependencyError,
    UnknownDependencyError,
)


class FieldKind(enum.Enum):
    PROP = "prop"
    STATE = "state"
    COMPUTED = "computed"
    REACT = "react"


# Sentinel: the field was declared without a default.
NO_DEFAULT: Any = object()

_MUTABLE_DEFAULTS = (list, dict, set, bytearray)


def make_thunk(default: Any) -> Callable[[], Any] | None:
    """Wrap a declared default so it is only evaluated at mount.

    Callables are used as-is. Mutable containers are copied per instance.
    To default a field to a callable, wrap it: default=lambda: my_fn.
    """
    if default is NO_DEFAULT:
        return None
    if callable(default):
        return default
    if isinstance(default, _MUTABLE_DEFAULTS):
        return lambda: copy.copy(default)
    return lambda: default


@dataclass(frozen=True)
class FieldDeclaration:
    name: str
    kind: FieldKind
    default_thunk: Callable[[], Any] | None = None

    @property
    def has_default(self) -> bool:
        return self.default_thunk is not None

    @property
    def required(self) -> bool:
        """Only props without defaults are required."""
        return self.kind is FieldKind.PROP and not self.has_default

    def default_value(self) -> Any:
        if self.default_thunk is None:
            raise DeclarationError(f"{self.kind.value} {self.name!r} has no default")
        return self.default_thunk()


@dataclass(frozen=True)
class ReactiveDeclaration:
    name: str
    depends_on: tuple[str, ...]
    fn: Callable[[Any], Any]
    allow_repeat: bool = False


def _same_declaration(existing, decl) -> bool:
    if existing is None or existing is decl:
        return existing is decl
    if isinstance(existing, ReactiveDeclaration) and isinstance(decl, ReactiveDeclaration):
        return existing.depends_on == decl.depends_on and existing.allow_repeat == decl.allow_repeat
    return existing == decl


def flatten_names(names: str | Iterable) -> tuple[str, ...]:
    """Flatten a name or nested lists of names, dropping duplicates, keeping order."""
    flat: dict[str, None] = {}

    def _walk(item) -> None:
        if isinstance(item, str):
            flat.setdefault(item, None)
        else:
            for child in item:
                _walk(child)

    _walk(names)
    return tuple(flat)


class Schema:
    """Declarations for one component type, plus the trigger index built from them."""

    def __init__(self, name: str = "<component>") -> None:
        self.name = name
        self._fields: dict[str, FieldDeclaration] = {}
        self._reactive: dict[str, ReactiveDeclaration] = {}
        self._triggers: dict[str, tuple[str, ...]] = {}
        self._dependents: dict[str, tuple[str, ...]] = {}
        self._dispatch: dict[str, Callable[[Any], Any]] = {}
        self._closed = False

    @classmethod
    def inherit(cls, parents: Schema | Iterable[Schema] | None, name: str) -> Schema:
        """A fresh, open schema that starts with every declaration of parents.

        Parents merge in order. A name reached through more than one parent
        must be the same declaration, as happens with a shared ancestor;
        reactive functions may differ in implementation only. Anything else
        raises DuplicateFieldError.
        """
        if parents is None:
            parents = ()
        elif isinstance(parents, Schema):
            parents = (parents,)
        schema = cls(name)
        for parent in parents:
            for decl in parent._fields.values():
                schema._merge_inherited(decl, decl.kind, schema._fields)
            for decl in parent._reactive.values():
                schema._merge_inherited(decl, FieldKind.REACT, schema._reactive)
        return schema

    def _merge_inherited(self, decl, kind: FieldKind, into: dict) -> None:
        previous = self.kind_of(decl.name)
        if previous is None:
            into[decl.name] = decl
            return
        if not _same_declaration(into.get(decl.name), decl):
            raise DuplicateFieldError(decl.name, kind.value, previous.value)

    # --- Declaration ---

    def declare_field(self, name: str, kind: FieldKind, *, default: Any = NO_DEFAULT) -> FieldDeclaration:
        if kind is FieldKind.REACT:
            raise DeclarationError("reactive functions are declared with declare_reactive()")
        self._ensure_open()
        self._ensure_not_declared(name, kind)
        decl = FieldDeclaration(name, kind, make_thunk(default))
        self._fields[name] = decl
        return decl

    def declare_reactive(
        self,
        name: str,
        depends_on: str | Iterable,
        fn: Callable[[Any], Any],
        *,
        allow_repeat: bool = False,
    ) -> ReactiveDeclaration:
        self._ensure_open()
        self._ensure_not_declared(name, FieldKind.REACT)
        deps = flatten_names(depends_on)
        if name in deps:
            raise SelfDependencyError(name)
        decl = ReactiveDeclaration(name, deps, fn, allow_repeat)
        self._reactive[name] = decl
        return decl

    def rebind(self, name: str, fn: Callable[[Any], Any]) -> ReactiveDeclaration:
        """Point an inherited reactive function at an overriding implementation."""
        self._ensure_open()
        decl = self._reactive[name]
        decl = ReactiveDeclaration(name, decl.depends_on, fn, decl.allow_repeat)
        self._reactive[name] = decl
        return decl

    def _ensure_open(self) -> None:
        if self._closed:
            raise DeclarationError(f"schema {self.name!r} is closed; declare fields before close_graph()")

    def _ensure_not_declared(self, name: str, kind: FieldKind) -> None:
        previous = self.kind_of(name)
        if previous is not None:
            raise DuplicateFieldError(name, kind.value, previous.value)

    # --- Closing the graph ---

    def close_graph(self) -> Schema:
        """Build the trigger index and dispatch table. Safe to call repeatedly."""
        known = set(self._fields) | set(self._reactive)
        for decl in self._reactive.values():
            for dep in decl.depends_on:
                if dep not in known:
                    raise UnknownDependencyError(decl.name, dep, known)
        self._check_for_cycles()

        self._triggers = {
            name: self._reacting_to(name)
            for name, decl in self._fields.items()
            if decl.kind in (FieldKind.PROP, FieldKind.STATE)
        }
        self._dependents = {name: self._reacting_to(name) for name in self._reactive}
        self._dispatch = {name: decl.fn for name, decl in self._reactive.items()}
        self._closed = True
        return self

    def _reacting_to(self, source: str) -> tuple[str, ...]:
        return tuple(name for name, decl in self._reactive.items() if source in decl.depends_on)

    def _check_for_cycles(self) -> None:
        # Reactive-to-reactive edges only; a cycle would make resolution recurse forever.
        done: set[str] = set()

        def _visit(name: str, path: list[str]) -> None:
            if name in done:
                return
            if name in path:
                raise DependencyCycleError(path[path.index(name):] + [name])
            path.append(name)
            for dep in self._reactive[name].depends_on:
                if dep in self._reactive:
                    _visit(dep, path)
            path.pop()
            done.add(name)

        for name in self._reactive:
            _visit(name, [])

    # --- Queries ---

    @property
    def closed(self) -> bool:
        return self._closed

    def kind_of(self, name: str) -> FieldKind | None:
        if name in self._fields:
            return self._fields[name].kind
        if name in self._reactive:
            return FieldKind.REACT
        return None

    def field(self, name: str) -> FieldDeclaration:
        return self._fields[name]

    def fields(self, kind: FieldKind) -> list[FieldDeclaration]:
        return [decl for decl in self._fields.values() if decl.kind is kind]

    def names(self, kind: FieldKind) -> list[str]:
        if kind is FieldKind.REACT:
            return list(self._reactive)
        return [decl.name for decl in self.fields(kind)]

    def required_props(self) -> list[str]:
        return [decl.name for decl in self._fields.values() if decl.required]

    def is_reactive(self, name: str) -> bool:
        return name in self._reactive

    def reactive(self, name: str) -> ReactiveDeclaration:
        return self._reactive[name]

    def triggers(self, name: str) -> tuple[str, ...]:
        """Reactive functions that depend directly on a prop or state field."""
        return self._triggers.get(name, ())

    def trigger_index(self) -> dict[str, tuple[str, ...]]:
        return dict(self._triggers)

    def dependents(self, name: str) -> tuple[str, ...]:
        """Reactive functions that list another reactive function as a dependency."""
        return self._dependents.get(name, ())

    def triggered_by(self, names: Iterable[str]) -> list[str]:
        """Union of the direct triggers of names, in declaration order."""
        hit: set[str] = set()
        for name in names:
            hit.update(self.triggers(name))
        return [name for name in self._reactive if name in hit]

    def dispatch(self, name: str) -> Callable[[Any], Any]:
        return self._dispatch[name]

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Schema({self.name}, {len(self._fields)} fields, {len(self._reactive)} reactive, {state})"
