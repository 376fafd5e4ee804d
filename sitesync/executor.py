"""
Executor - Bounded-concurrency job dispatch with fail-fast semantics.

The Executor implements:
- Partitioning of the plan into sync jobs and at most one invalidation job
- Concurrent dispatch of sync jobs, never more than max_concurrency in flight
- Fail-fast: the first failed result stops admission of new jobs
- Ordered invalidation: runs only after every sync job succeeded

Execution flow:
1. Partition jobs (before any worker starts)
2. For each sync job:
   a. Acquire a pool slot (blocks while max_concurrency jobs are in flight)
   b. Stop admitting if a failure has already been collected
   c. Submit to the thread pool; the worker calls the RemoteStore and
      puts a JobResult on the results queue, then frees its slot
3. Collect one JobResult per dispatched job
4. On failure: drain in-flight work, mark ABORTED, raise ExecutionError
5. On success: call RemoteStore.invalidate synchronously, mark DONE

No job is ever retried.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from sitesync.errors import ConfigError, ExecutionError
from sitesync.observer import SyncObserver
from sitesync.remote import RemoteStore
from sitesync.schemas import Action, Job, JobResult, RunState


logger = logging.getLogger(__name__)


def partition_jobs(jobs: Sequence[Job]) -> tuple[list[Job], Optional[Job]]:
    """
    Split a plan into sync jobs and the invalidation job.

    Args:
        jobs: Full job list

    Returns:
        Tuple of (sync_jobs, invalidate_job or None)

    Raises:
        ValueError: If the plan contains more than one invalidation job
    """
    sync_jobs: list[Job] = []
    invalidate_job: Optional[Job] = None
    for job in jobs:
        if job.action.is_sync:
            sync_jobs.append(job)
        elif invalidate_job is None:
            invalidate_job = job
        else:
            raise ValueError("Plan contains more than one invalidate_cache job")
    return sync_jobs, invalidate_job


class Executor:
    """
    Execution engine for a sync plan.

    Usage:
        executor = Executor(store=S3RemoteStore(config), max_concurrency=10)
        results = executor.run(jobs)

    The executor is single-use: create one per run. Its state attribute
    follows PLANNING -> DISPATCHING -> (INVALIDATING ->) DONE | ABORTED.
    """

    def __init__(
        self,
        store: RemoteStore,
        max_concurrency: int,
        observer: Optional[SyncObserver] = None,
    ):
        """
        Initialize the executor.

        Args:
            store: RemoteStore every job is dispatched against
            max_concurrency: Upper bound on in-flight store calls (>= 1)
            observer: Receives job_dispatched/job_completed notifications

        Raises:
            ConfigError: If max_concurrency is below 1
        """
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int) or max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")

        self._store = store
        self._max_concurrency = max_concurrency
        self._observer = observer or SyncObserver()
        self.state = RunState.PLANNING

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def run(self, jobs: Sequence[Job]) -> list[JobResult]:
        """
        Execute a plan.

        Args:
            jobs: Planned jobs, optionally including one invalidate_cache job

        Returns:
            One JobResult per sync job (completion order)

        Raises:
            ExecutionError: On the first failed job or a failed invalidation
            RuntimeError: If the executor was already used
        """
        if self.state is not RunState.PLANNING:
            raise RuntimeError(f"Executor already ran (state={self.state.value})")

        # Settled before any worker exists; workers never touch it.
        sync_jobs, invalidate_job = partition_jobs(jobs)

        self.state = RunState.DISPATCHING
        results, failure = self._dispatch(sync_jobs)
        if failure is not None:
            self.state = RunState.ABORTED
            raise ExecutionError(failure.job, failure.error) from failure.error

        if invalidate_job is not None:
            self.state = RunState.INVALIDATING
            self._invalidate(invalidate_job)

        self.state = RunState.DONE
        return results

    def _dispatch(self, sync_jobs: list[Job]) -> tuple[list[JobResult], Optional[JobResult]]:
        """
        Run sync jobs on a bounded pool.

        Returns:
            Tuple of (collected results, first failed result or None)
        """
        results: "queue.Queue[JobResult]" = queue.Queue()
        slots = threading.BoundedSemaphore(self._max_concurrency)
        collected: list[JobResult] = []
        failure: Optional[JobResult] = None
        dispatched = 0

        with ThreadPoolExecutor(
            max_workers=self._max_concurrency,
            thread_name_prefix="sitesync",
        ) as pool:
            for job in sync_jobs:
                slots.acquire()
                failure = failure or self._collect_ready(results, collected)
                if failure is not None:
                    slots.release()
                    logger.info("Stopping dispatch after failure of %s %s", failure.job.action.value, failure.job.remote)
                    break

                self._observer.job_dispatched(job)
                pool.submit(self._run_job, job, slots, results)
                dispatched += 1

            # In-flight jobs always drain; their results only matter until the first failure.
            while len(collected) < dispatched:
                result = results.get()
                collected.append(result)
                self._observer.job_completed(result)
                if failure is None and not result.ok:
                    failure = result

        return collected, failure

    def _collect_ready(self, results: "queue.Queue[JobResult]", collected: list[JobResult]) -> Optional[JobResult]:
        """Collect results already available without blocking; return the first failure."""
        failure = None
        while True:
            try:
                result = results.get_nowait()
            except queue.Empty:
                return failure
            collected.append(result)
            self._observer.job_completed(result)
            if failure is None and not result.ok:
                failure = result

    def _run_job(self, job: Job, slots: threading.BoundedSemaphore, results: "queue.Queue[JobResult]") -> None:
        """Worker body: one store call, one result, one slot released."""
        try:
            try:
                self._call_store(job)
            except Exception as e:
                result = JobResult(job=job, error=e)
            except BaseException as e:
                # The collector still needs one result per dispatched job.
                results.put(JobResult(job=job, error=e))
                raise
            else:
                result = JobResult(job=job)
            # Result is visible before the slot frees, so admission sees every failure.
            results.put(result)
        finally:
            slots.release()

    def _call_store(self, job: Job) -> None:
        """Map a sync job to exactly one RemoteStore call."""
        if job.action == Action.UPLOAD:
            self._store.upload(job.local, job.remote)
        elif job.action == Action.REDIRECT:
            self._store.redirect(job.local, job.remote)
        elif job.action == Action.DELETE:
            self._store.delete(job.remote)
        else:
            raise ValueError(f"Unsupported sync action: {job.action!r}")

    def _invalidate(self, job: Job) -> None:
        """Run the invalidation job outside the pool."""
        self._observer.job_dispatched(job)
        try:
            self._store.invalidate(job.remote)
        except Exception as e:
            self.state = RunState.ABORTED
            self._observer.job_completed(JobResult(job=job, error=e))
            raise ExecutionError(job, e) from e
        self._observer.job_completed(JobResult(job=job))


def run_jobs(
    jobs: Sequence[Job],
    store: RemoteStore,
    max_concurrency: int,
    observer: Optional[SyncObserver] = None,
) -> list[JobResult]:
    """
    Execute a plan with a fresh Executor.

    Convenience wrapper around Executor(store, max_concurrency, observer).run(jobs).
    """
    return Executor(store, max_concurrency, observer=observer).run(jobs)
