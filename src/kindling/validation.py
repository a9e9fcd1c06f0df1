"""Validation layer — fail-fast checks on field names and required props.

Both checks read the component's captured runtime_checks flag (see
kindling.config). When it is off they are no-ops that hand back their input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kindling.errors import MissingRequiredFieldError, UndeclaredFieldError
from kindling.registry import FieldKind

if TYPE_CHECKING:
    from kindling.component import Component


def ensure_required_present(component: Component, kind: FieldKind = FieldKind.PROP) -> Component:
    """Check every required field of kind has a value. Runs once per instance.

    Only props can be required; state and computed fields pass.
    """
    tx = component._tx
    if not component._runtime_checks or tx.props_validated:
        return component
    if kind is FieldKind.PROP:
        for decl in type(component).schema.fields(FieldKind.PROP):
            if decl.required and decl.name not in component._values:
                raise MissingRequiredFieldError(kind.value, decl.name)
        tx.props_validated = True
    return component


def ensure_key_declared(component: Component, kind: FieldKind, name: str) -> str:
    """Check name is declared under kind on the component's type."""
    if not component._runtime_checks:
        return name
    schema = type(component).schema
    if schema.kind_of(name) is not kind:
        raise UndeclaredFieldError(kind.value, name, schema.names(kind))
    return name


def ensure_keys_declared(component: Component, kind: FieldKind, changes: dict) -> dict:
    for name in changes:
        ensure_key_declared(component, kind, name)
    return changes
