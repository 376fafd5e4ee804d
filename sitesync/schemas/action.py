"""
Action enum defining the job taxonomy for sitesync.

Actions split into two phases:
- upload, redirect, delete -> sync phase (dispatched concurrently)
- invalidate_cache         -> invalidation phase (sequential, after sync succeeds)
"""

from enum import Enum


class Action(str, Enum):
    """Enumeration of all valid job actions."""
    UPLOAD = "upload"
    REDIRECT = "redirect"
    DELETE = "delete"
    INVALIDATE_CACHE = "invalidate_cache"

    @property
    def is_sync(self) -> bool:
        """True for actions dispatched in the concurrent sync phase."""
        return self is not Action.INVALIDATE_CACHE
