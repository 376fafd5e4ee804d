"""
Error classes for sitesync.

Every fatal condition is an exception that propagates up to the caller:
- ConfigError: Required configuration missing or invalid (raised before planning)
- LocalIOError: Local filesystem traversal failed (aborts planning)
- RemoteError: Any RemoteStore operation failed (list, upload, redirect, delete, invalidate)
- ExecutionError: A job failed during execution (wraps the job and its cause)

Error handling contract:
- Errors are exceptions, not values
- Nothing is retried, nothing is downgraded to a warning
- Only the CLI decides on exit codes
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sitesync.schemas import Job


class SiteSyncError(Exception):
    """Base exception for sitesync."""
    pass


class ConfigError(SiteSyncError):
    """
    Configuration error - required settings missing or invalid.

    Examples:
    - No bucket configured
    - max_concurrency below 1
    - Config file missing or not valid YAML
    """
    pass


class LocalIOError(SiteSyncError):
    """
    Local filesystem traversal failed.

    Raised by the planner when the source tree cannot be walked.
    No partial plan is ever returned alongside this error.
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class RemoteError(SiteSyncError):
    """
    A RemoteStore operation failed.

    Attributes:
        operation: Store operation name (list, upload, redirect, delete, invalidate)
        key: Remote key or path pattern the operation targeted
    """

    def __init__(self, operation: str, key: str, message: str):
        self.operation = operation
        self.key = key
        super().__init__(f"{operation} {key!r} failed: {message}")


class ExecutionError(SiteSyncError):
    """Raised by the executor on the first failed job."""

    def __init__(self, job: "Job", cause: Optional[BaseException] = None):
        self.job = job
        self.cause = cause
        super().__init__(
            f"failed to {job.action.value} {job.local} to {job.remote}: {cause}"
        )
