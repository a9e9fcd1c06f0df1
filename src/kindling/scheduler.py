"""Reactive scheduler — runs triggered reactive functions in dependency order.

Inside one wave each reactive function runs at most once. Before a function
runs, every reactive function it depends on is resolved first (recursively),
so a function that depends on both a field and on another reactive function
reading that same field always sees the other function's writes:

    @react(to="count")
    def put_doubled(self): ...

    @react(to=["count", "put_doubled"])
    def put_label(self): ...        # runs after put_doubled, once

Follow-up waves (caused by writes made from reactive functions) also check
for loops: a function that runs again in a later wave of the same chain
raises InfiniteLoopError unless it was declared with repeats=True.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from kindling.errors import InfiniteLoopError
from kindling.registry import FieldKind

if TYPE_CHECKING:
    from kindling._anchor import TransactionState
    from kindling.component import Component
    from kindling.registry import ReactiveDeclaration, Schema

logger = logging.getLogger("kindling.scheduler")


def expand(schema: Schema, direct: Iterable[str]) -> list[str]:
    """Directly triggered functions plus everything downstream of them, in declaration order."""
    seen: set[str] = set()
    stack = list(direct)
    while stack:
        name = stack.pop()
        if name in seen:
            continue
        seen.add(name)
        stack.extend(schema.dependents(name))
    return [name for name in schema.names(FieldKind.REACT) if name in seen]


def resolve_and_run(component: Component, names: Iterable[str]) -> Component:
    """Ensure every reactive function in names has run in the current wave."""
    names = list(names)
    if not names:
        return component
    for name in names:
        _ensure_run(component, name)
    return component


def _ensure_run(component: Component, name: str) -> None:
    tx = component._tx
    if name in tx.triggered:
        return

    schema = type(component).schema
    decl = schema.reactive(name)

    # Settle reactive dependencies first. Prop and state dependencies are
    # already current: waves only start after they are written.
    resolve_and_run(component, [dep for dep in decl.depends_on if schema.is_reactive(dep)])

    if tx.check_loops:
        _check_for_loop(tx, decl)

    logger.debug("%s: running %s", type(component).__name__, name)
    outer, tx.running = tx.running, name
    try:
        schema.dispatch(name)(component)
    finally:
        tx.running = outer
    tx.triggered.add(name)


def _check_for_loop(tx: TransactionState, decl: ReactiveDeclaration) -> None:
    if decl.name in tx.loop_seen and not decl.allow_repeat:
        raise InfiniteLoopError(decl.name, decl.depends_on)
    tx.loop_seen.add(decl.name)
