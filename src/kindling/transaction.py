"""Transactions — turning bursts of field writes into propagation waves.

A write from outside any reactive function starts a chain of waves:

    wave 1: run every reactive function triggered by the written fields
    wave 2: run every reactive function triggered by writes made in wave 1
    ...

While a wave runs, writes are applied to the component immediately (later
reactive functions in the same wave read them) but their propagation is
queued for the next wave. Waves never nest, and wave N+1 only starts once
wave N has settled. The whole chain completes before the write returns.

Batching several writes into one chain:

    with batch(component):
        put_state(component, {"first": "Ada"})
        put_state(component, {"last": "Lovelace"})
        # reactive functions run here, once, seeing both writes
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping

from kindling import scheduler, validation
from kindling.registry import FieldKind

if TYPE_CHECKING:
    from kindling.component import Component

logger = logging.getLogger("kindling.transaction")


def put_state(component: Component, changes: Mapping[str, object]) -> Component:
    """The sanctioned way to change state fields."""
    changes = dict(changes)
    validation.ensure_keys_declared(component, FieldKind.STATE, changes)
    return write(component, changes)


def write(component: Component, changes: Mapping[str, object], changed: Iterable[str] | None = None) -> Component:
    """Assign changes, then propagate them now or, mid-wave, in the next wave.

    changed narrows which names propagate; by default every key does.
    """
    changes = dict(changes)
    changed = list(changes) if changed is None else list(changed)
    component._values.update(changes)
    tx = component._tx
    if tx.in_transaction:
        tx.pending.update({name: changes.get(name) for name in changed})
        return component
    return propagate(component, changed)


def propagate(component: Component, changed: Iterable[str]) -> Component:
    """Run the wave for changed and every follow-up wave it causes."""
    tx = component._tx
    tx.reset_chain()
    names = list(changed)
    wave = 1
    while names:
        run_wave(component, names, check_loops=wave > 1)
        # Clear before the next wave so nothing is propagated twice.
        names = list(tx.pending)
        tx.pending.clear()
        wave += 1
    return component


def run_wave(component: Component, changed: Iterable[str], *, check_loops: bool) -> Component:
    """One transaction: run everything triggered by changed, each function once."""
    schema = type(component).schema
    direct = schema.triggered_by(changed)
    if not direct:
        return component

    tx = component._tx
    tx.triggered.clear()
    tx.in_transaction = True
    tx.check_loops = check_loops
    logger.debug("%s: opening wave for %s", type(component).__name__, direct)
    try:
        scheduler.resolve_and_run(component, scheduler.expand(schema, direct))
    finally:
        tx.in_transaction = False
        tx.triggered.clear()
    logger.debug("%s: wave settled, %d write(s) pending", type(component).__name__, len(tx.pending))
    return component


@contextmanager
def batch(component: Component) -> Iterator[bool]:
    """Defer propagation of every write made inside the block to its end.

    Nested batches, and batches opened from a reactive function, join the
    enclosing one. Yields True for the outermost batch. If the block raises,
    nothing is propagated; the writes already applied stay applied.
    """
    tx = component._tx
    if tx.in_transaction:
        yield False
        return

    tx.reset_chain()
    tx.in_transaction = True
    try:
        yield True
    finally:
        tx.in_transaction = False
    changed = list(tx.pending)
    tx.pending.clear()
    propagate(component, changed)
