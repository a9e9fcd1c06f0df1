"""Process-wide configuration.

kindling validates field names and required props at runtime to give helpful
errors while developing. Once a component tree is trusted the checks can be
switched off for speed:

    KINDLING_RUNTIME_CHECKS=0 python app.py

The environment is read once, at import. set_runtime_checks() overrides it
for the whole process; components capture the value when they mount, and a
single component can force it with Component(runtime_checks=True).

Loop detection is not a runtime check and is never disabled.
"""

from __future__ import annotations

import os

_DISABLED = frozenset({"0", "false", "no", "off"})


def _parse(value: str | None) -> bool:
    if value is None:
        return True
    return value.strip().lower() not in _DISABLED


runtime_checks: bool = _parse(os.environ.get("KINDLING_RUNTIME_CHECKS"))


def set_runtime_checks(enabled: bool) -> None:
    """Enable or disable the validation layer for components mounted from now on."""
    global runtime_checks
    runtime_checks = bool(enabled)
