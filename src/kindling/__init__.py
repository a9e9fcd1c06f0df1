"""kindling: reactive props, state and computed fields for UI components."""

from importlib.metadata import version as _version

__version__ = _version("kindling")

from kindling.config import set_runtime_checks
from kindling.registry import FieldKind, Schema
from kindling.fields import prop, state, computed, event, react
from kindling.component import Component, action
from kindling.events import Mailbox, Message, send_message
from kindling.errors import (
    KindlingError,
    DeclarationError,
    DuplicateFieldError,
    SelfDependencyError,
    UnknownDependencyError,
    DependencyCycleError,
    ValidationError,
    MissingRequiredFieldError,
    UndeclaredFieldError,
    ComputedWriteError,
    LoopError,
    InfiniteLoopError,
    ComponentUnmountedError,
    UnsetFieldError,
)
# textual NOT auto-imported — opt-in only

__all__ = [
    "Component",
    "action",
    "prop",
    "state",
    "computed",
    "event",
    "react",
    "FieldKind",
    "Schema",
    "Mailbox",
    "Message",
    "send_message",
    "set_runtime_checks",
    "KindlingError",
    "DeclarationError",
    "DuplicateFieldError",
    "SelfDependencyError",
    "UnknownDependencyError",
    "DependencyCycleError",
    "ValidationError",
    "MissingRequiredFieldError",
    "UndeclaredFieldError",
    "ComputedWriteError",
    "LoopError",
    "InfiniteLoopError",
    "ComponentUnmountedError",
    "UnsetFieldError",
]
