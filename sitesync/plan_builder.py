"""
Plan Builder - Derive the sync job list from local and remote state.

The plan is built from four inputs:
- the local tree under local_root (walked here, the only I/O in this module)
- the remote listing for target_prefix (fetched by the caller)
- the redirect table {source_key: target}
- the delete flag

Output order:
1. upload jobs, one per local file, in walk order
2. redirect jobs, one per redirect entry
3. delete jobs, one per remote key with no local or redirect counterpart

The invalidation job is never part of the plan. The pipeline appends it
via build_invalidate_job() when a CDN distribution is configured.

Key normalization:
- Backslashes become forward slashes before any comparison
- Prefix trimming is anchored: a prefix is removed only when the key starts with it
- Exactly one leading separator is removed afterwards
- Matching is exact string membership (no globbing, no case folding)
"""

import logging
import os
import posixpath
from collections import Counter
from typing import Iterable, Mapping, Optional

from sitesync.errors import ConfigError, LocalIOError
from sitesync.observer import SyncObserver
from sitesync.schemas import Action, Job


logger = logging.getLogger(__name__)

SEPARATORS = ("/", "\\")

# Same price to invalidate the whole distribution as a single path
INVALIDATE_ALL = "/*"


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _strip_separator(key: str) -> str:
    """Remove a single leading separator, if present."""
    if key[:1] in SEPARATORS:
        return key[1:]
    return key


def _strip_prefix(key: str, prefix: str) -> str:
    """Remove prefix from key only when key actually starts with it."""
    if prefix and key.startswith(prefix):
        return key[len(prefix):]
    return key


def _relative_key(path: str, local_root: str) -> str:
    """
    Compute the relative key of a walked path.

    When local_root is the current directory nothing is trimmed, so
    leading characters of real file names are never lost.
    """
    path = _normalize(path)
    root = _normalize(local_root)
    if root != ".":
        path = _strip_prefix(path, root)
    return _strip_separator(path)


def _remote_key(target_prefix: str, relative: str) -> str:
    if not target_prefix:
        return relative
    return posixpath.join(_normalize(target_prefix), relative)


def walk_local_files(local_root: str) -> list[str]:
    """
    Enumerate regular files under local_root as relative keys.

    Directories are traversed but never returned. Directory and file names
    are visited in sorted order so plans are deterministic.

    Args:
        local_root: Directory to walk

    Returns:
        Relative keys using forward slashes, without a leading separator

    Raises:
        LocalIOError: If local_root is missing or any directory cannot be read
    """
    root = os.path.normpath(local_root)
    if not os.path.isdir(root):
        raise LocalIOError(local_root, "source directory does not exist or is not a directory")

    def _raise(err: OSError) -> None:
        raise LocalIOError(err.filename or local_root, err.strerror or str(err)) from err

    keys: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.normpath(os.path.join(dirpath, name))
            keys.append(_relative_key(path, root))
    return keys


def build_plan(
    local_root: str,
    target_prefix: str,
    remote_listing: Iterable[str],
    redirects: Optional[Mapping[str, str]] = None,
    delete_enabled: bool = False,
    observer: Optional[SyncObserver] = None,
) -> list[Job]:
    """
    Build the ordered sync job list.

    Args:
        local_root: Local source directory
        target_prefix: Remote prefix all uploads are placed under
        remote_listing: Remote keys currently under target_prefix
        redirects: Mapping of redirect source key -> redirect target
        delete_enabled: Emit delete jobs for unmatched remote keys
        observer: Receives key_matched/key_unmatched during the delete pass

    Returns:
        Upload jobs, then redirect jobs, then delete jobs

    Raises:
        LocalIOError: If the local tree cannot be walked (no partial plan)
        ConfigError: If a redirect source is also the key of an uploaded file
    """
    observer = observer or SyncObserver()
    redirects = redirects or {}

    jobs: list[Job] = []
    known: set[str] = set()
    uploaded: set[str] = set()

    for relative in walk_local_files(local_root):
        known.add(relative)
        jobs.append(Job(
            action=Action.UPLOAD,
            local=os.path.join(local_root, relative),
            remote=_remote_key(target_prefix, relative),
        ))
        uploaded.add(jobs[-1].remote)

    for source, target in redirects.items():
        source = _strip_separator(_normalize(source))
        if source in uploaded:
            # Both jobs would write the same object concurrently
            raise ConfigError(f"Redirect source {source!r} is also uploaded from the local tree")
        known.add(source)
        jobs.append(Job(action=Action.REDIRECT, local=source, remote=target))

    if not delete_enabled:
        return jobs

    prefix = _normalize(target_prefix)
    seen: set[str] = set()
    for remote in remote_listing:
        if remote in seen:
            continue
        seen.add(remote)

        candidate = _strip_separator(_strip_prefix(_normalize(remote), prefix))
        if candidate in known:
            observer.key_matched(remote, candidate)
            continue

        observer.key_unmatched(remote, candidate)
        jobs.append(Job(action=Action.DELETE, remote=remote))

    return jobs


def build_invalidate_job(path: str = INVALIDATE_ALL) -> Job:
    """Build the single cache invalidation job for a run."""
    return Job(action=Action.INVALIDATE_CACHE, remote=path)


def summarize_plan(jobs: Iterable[Job]) -> dict[str, int]:
    """Count jobs per action, including actions with zero jobs."""
    counts = Counter(job.action for job in jobs)
    return {action.value: counts.get(action, 0) for action in Action}
