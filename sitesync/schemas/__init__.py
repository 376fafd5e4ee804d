"""
sitesync.schemas - Data model shared by the planner and the executor.

Lifecycle:
1. Job: created by the planner (upload, redirect, delete) or the pipeline (invalidate_cache)
2. JobResult: produced once per dispatched sync job
3. RunState: tracks the executor through dispatch and invalidation
"""

from .action import Action
from .job import Job, JobResult
from .run_state import RunState

__all__ = [
    "Action",
    "Job",
    "JobResult",
    "RunState",
]
