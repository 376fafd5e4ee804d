"""
Run state for a single sync run.

    PLANNING -> DISPATCHING -> INVALIDATING -> DONE
                            +-> ABORTED

DONE and ABORTED are terminal. There is no resumed or partial state.
"""

from enum import Enum


class RunState(str, Enum):
    """Lifecycle state of a sync run."""
    PLANNING = "planning"
    DISPATCHING = "dispatching"
    INVALIDATING = "invalidating"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.ABORTED)
