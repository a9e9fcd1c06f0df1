"""Transaction anchor — the private bookkeeping each component instance carries.

Plain data with no behavior, owned by one component and touched only by the
transaction manager, the scheduler and the validation layer. User code never
reads or writes it.
"""

from __future__ import annotations


class TransactionState:
    __slots__ = (
        "in_transaction",
        "running",
        "triggered",
        "pending",
        "check_loops",
        "loop_seen",
        "props_validated",
    )

    def __init__(self) -> None:
        # True while a wave is running reactive functions or a batch is open.
        self.in_transaction: bool = False
        # Name of the reactive function currently executing, if any.
        self.running: str | None = None
        # Reactive functions already run in the current wave.
        self.triggered: set[str] = set()
        # Writes requested by reactive functions, propagated in the next wave.
        self.pending: dict[str, object] = {}
        # Only follow-up waves check for loops; the external wave does not.
        self.check_loops: bool = False
        # Reactive functions run across the follow-up waves of one chain.
        self.loop_seen: set[str] = set()
        # Required props are checked on the first external update only.
        self.props_validated: bool = False

    def reset_chain(self) -> None:
        """Start a new chain of waves on behalf of an external caller."""
        self.in_transaction = False
        self.running = None
        self.triggered.clear()
        self.pending.clear()
        self.check_loops = False
        self.loop_seen.clear()

    def __repr__(self) -> str:
        state = "in_transaction" if self.in_transaction else "idle"
        return f"TransactionState({state}, pending={sorted(self.pending)!r})"
