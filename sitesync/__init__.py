"""
sitesync - Synchronize a local directory tree to an object store.

Plans upload/redirect/delete jobs from local and remote state, runs them
with bounded concurrency, and invalidates the CDN cache once every job
has succeeded.
"""

__version__ = "0.1.0"


__all__ = ["SyncConfig", "load_config", "get_sitesync_home", "run_sync", "preview_sync"]

from .config import SyncConfig, load_config, get_sitesync_home
from .pipeline import run_sync, preview_sync
