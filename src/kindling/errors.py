"""Errors raised by kindling.

Every error here is a precondition violation. None of them is caught inside
the library: they unwind to whoever drove the component (mount, update,
put_state) so the component definition can be fixed.

    KindlingError
    ├── DeclarationError        bad component definition, raised at class creation
    │   ├── DuplicateFieldError
    │   ├── SelfDependencyError
    │   ├── UnknownDependencyError
    │   └── DependencyCycleError
    ├── ValidationError         raised on the first update that exposes it
    │   ├── MissingRequiredFieldError
    │   ├── UndeclaredFieldError
    │   └── ComputedWriteError
    ├── LoopError
    │   └── InfiniteLoopError
    ├── ComponentUnmountedError
    └── UnsetFieldError         (also an AttributeError)
"""

from __future__ import annotations

from typing import Iterable


class KindlingError(Exception):
    """Base class for every kindling error."""


# ─── Declaration ─────────────────────────────────────────────────────────────


class DeclarationError(KindlingError):
    """A component type was declared incorrectly."""


class DuplicateFieldError(DeclarationError):
    """A name was declared twice. Props, state, computed and reactive
    functions share one namespace per component type."""

    def __init__(self, name: str, kind: str, previous_kind: str) -> None:
        self.name = name
        self.kind = kind
        self.previous_kind = previous_kind
        if kind == previous_kind:
            message = f"{kind} {name!r} is already defined"
        else:
            message = (
                f"{name!r} is already defined as {_friendly(previous_kind)}, "
                f"and can't be reused as {_friendly(kind)}"
            )
        super().__init__(message)


class SelfDependencyError(DeclarationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"reactive function {name!r} cannot react to itself")


class UnknownDependencyError(DeclarationError):
    def __init__(self, name: str, dependency: str, known_names: Iterable[str]) -> None:
        self.name = name
        self.dependency = dependency
        self.known_names = sorted(known_names)
        super().__init__(
            f"reactive function {name!r} reacts to {dependency!r}, which is not declared; "
            f"expected one of: {self.known_names!r}"
        )


class DependencyCycleError(DeclarationError):
    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("reactive functions depend on each other in a cycle: " + " -> ".join(cycle))


# ─── Validation ──────────────────────────────────────────────────────────────


class ValidationError(KindlingError):
    """A component instance was driven with fields its type does not allow."""


class MissingRequiredFieldError(ValidationError):
    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"expected required {kind} {name!r} to be assigned")


class UndeclaredFieldError(ValidationError):
    def __init__(self, kind: str, name: str, known_names: Iterable[str]) -> None:
        self.kind = kind
        self.name = name
        self.known_names = sorted(known_names)
        super().__init__(
            f"attempted to set {kind} {name!r}, but it is not defined; "
            f"expected one of: {self.known_names!r}"
        )


class ComputedWriteError(ValidationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"computed {name!r} can only be written from a reactive function on this component"
        )


# ─── Propagation ─────────────────────────────────────────────────────────────


class LoopError(KindlingError):
    """Propagation did not settle."""


class InfiniteLoopError(LoopError):
    def __init__(self, function_name: str, depends_on: Iterable[str]) -> None:
        self.function_name = function_name
        self.depends_on = list(depends_on)
        super().__init__(
            f"reactive function {function_name!r} was triggered multiple times within a single "
            f"update cycle, indicating a possible infinite loop. Disable this protection via "
            f"allowRepeat: @react(to={self.depends_on!r}, repeats=True)"
        )


# ─── Instance lifecycle ──────────────────────────────────────────────────────


class ComponentUnmountedError(KindlingError):
    def __init__(self, component: object) -> None:
        self.component = component
        super().__init__(f"{component!r} has been unmounted")


class UnsetFieldError(KindlingError, AttributeError):
    def __init__(self, kind: str, name: str) -> None:
        # AttributeError.__init__ resets .name, so it has to run first.
        super().__init__(f"{kind} {name!r} has not been assigned", name=name)
        self.kind = kind


def _friendly(kind: str) -> str:
    return {
        "prop": "a prop",
        "state": "state",
        "computed": "computed",
        "react": "a reactive function",
    }.get(kind, kind)
