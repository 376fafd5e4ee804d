"""
Observer hooks for the planner and the executor.

The planner reports every remote key it compares during the delete pass,
the executor reports every job it dispatches and every result it collects.
SyncObserver is a no-op base; LoggingObserver writes to the sitesync logger.
"""

import logging
from typing import Optional

from sitesync.schemas import Job, JobResult


class SyncObserver:
    """No-op observer. Subclass and override the hooks you need."""

    def key_matched(self, remote_key: str, candidate: str) -> None:
        pass

    def key_unmatched(self, remote_key: str, candidate: str) -> None:
        pass

    def job_dispatched(self, job: Job) -> None:
        pass

    def job_completed(self, result: JobResult) -> None:
        pass


class LoggingObserver(SyncObserver):
    """Observer that logs each hook call."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("sitesync")

    def key_matched(self, remote_key: str, candidate: str) -> None:
        self.logger.debug("keep remote %s (matches local %s)", remote_key, candidate)

    def key_unmatched(self, remote_key: str, candidate: str) -> None:
        self.logger.debug("delete remote %s (no local %s)", remote_key, candidate)

    def job_dispatched(self, job: Job) -> None:
        self.logger.info(
            "%s %s -> %s", job.action.value, job.local or "-", job.remote,
            extra={"event": "job_dispatched"},
        )

    def job_completed(self, result: JobResult) -> None:
        job = result.job
        if result.ok:
            self.logger.debug(
                "%s %s done", job.action.value, job.remote,
                extra={"event": "job_completed"},
            )
        else:
            self.logger.error(
                "%s %s failed: %s", job.action.value, job.remote, result.error,
                extra={"event": "job_failed"},
            )
