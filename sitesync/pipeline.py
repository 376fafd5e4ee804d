"""
Sync pipeline - config -> store -> plan -> execute.

Stages:
1. Sanitize config (ConfigError surfaces before any I/O)
2. Build the RemoteStore (S3 unless one is injected)
3. List the remote prefix
4. Build the plan from the local tree and the listing
5. Append the invalidation job when a CDN distribution is configured
6. Execute with bounded concurrency

Every stage raises on failure; nothing here decides exit codes.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sitesync.config import SyncConfig
from sitesync.executor import Executor
from sitesync.observer import LoggingObserver, SyncObserver
from sitesync.plan_builder import build_invalidate_job, build_plan, summarize_plan
from sitesync.remote import RemoteStore, S3RemoteStore
from sitesync.schemas import Job, JobResult, RunState


logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of a successful run."""
    config: SyncConfig
    jobs: list[Job] = field(default_factory=list)
    results: list[JobResult] = field(default_factory=list)
    state: RunState = RunState.PLANNING

    @property
    def summary(self) -> dict[str, int]:
        return summarize_plan(self.jobs)


def listing_prefix(target: str) -> str:
    """
    Prefix used for RemoteStore.list.

    A non-empty target gets a trailing separator so sibling prefixes
    (site vs site2) never enter the delete pass.
    """
    if not target:
        return ""
    return target if target.endswith("/") else f"{target}/"


def _plan(
    config: SyncConfig,
    store: RemoteStore,
    observer: SyncObserver,
) -> list[Job]:
    remote = store.list(listing_prefix(config.target))
    logger.debug("Listed %d remote object(s) under %r", len(remote), config.target)

    jobs = build_plan(
        local_root=config.source,
        target_prefix=config.target,
        remote_listing=remote,
        redirects=config.redirects,
        delete_enabled=config.delete,
        observer=observer,
    )
    if config.invalidate_enabled:
        jobs.append(build_invalidate_job())
    return jobs


def preview_sync(
    config: SyncConfig,
    store: Optional[RemoteStore] = None,
    observer: Optional[SyncObserver] = None,
    cwd: Optional[str] = None,
) -> list[Job]:
    """
    Plan a run without executing it.

    Only RemoteStore.list is called.

    Returns:
        The full job list, including the invalidation job if enabled
    """
    config = config.sanitize(cwd)
    store = store or S3RemoteStore.from_config(config)
    return _plan(config, store, observer or LoggingObserver())


def run_sync(
    config: SyncConfig,
    store: Optional[RemoteStore] = None,
    observer: Optional[SyncObserver] = None,
    cwd: Optional[str] = None,
) -> SyncReport:
    """
    Run a full sync.

    Args:
        config: Sync settings (sanitized here)
        store: RemoteStore to use; defaults to S3RemoteStore.from_config(config)
        observer: Planner/executor observer; defaults to LoggingObserver
        cwd: Working directory used to resolve config.source

    Returns:
        SyncReport with the plan, per-job results and final state (DONE)

    Raises:
        ConfigError: Invalid configuration (before any I/O)
        LocalIOError: Source tree could not be walked
        RemoteError: Remote listing failed
        ExecutionError: A job or the invalidation failed
    """
    config = config.sanitize(cwd)
    observer = observer or LoggingObserver()
    store = store or S3RemoteStore.from_config(config)
    executor = Executor(store, config.max_concurrency, observer=observer)
    report = SyncReport(config=config, state=executor.state)

    report.jobs = _plan(config, store, observer)
    logger.info(
        "Planned %d job(s): %s",
        len(report.jobs),
        ", ".join(f"{k}={v}" for k, v in report.summary.items()),
        extra={"event": "plan_built", "metadata": report.summary},
    )

    report.results = executor.run(report.jobs)
    report.state = executor.state
    return report
