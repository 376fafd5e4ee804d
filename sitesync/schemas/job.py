"""
Job schemas - units of work and their outcomes.

Job is created once by the planner and consumed once by the executor.
JobResult records the outcome of one dispatched sync job.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .action import Action


@dataclass(frozen=True)
class Job:
    """
    A single unit of sync work.

    Attributes:
        action: What to do with the remote key
        remote: Remote key (or redirect target, or invalidation pattern)
        local: Local file path for uploads, redirect source key for redirects,
               empty for delete and invalidate_cache
    """
    action: Action
    remote: str
    local: str = ""

    def __post_init__(self):
        if self.action in (Action.DELETE, Action.INVALIDATE_CACHE) and self.local:
            raise ValueError(f"{self.action.value} jobs must not have a local path")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "action": self.action.value,
            "local": self.local,
            "remote": self.remote,
        }


@dataclass(frozen=True)
class JobResult:
    """Outcome of one dispatched sync job."""
    job: Job
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
