"""
RemoteStore - the only boundary the planner and executor depend on.

Every operation raises RemoteError on failure. Implementations own
everything provider-specific: authentication, request shaping, and
per-object upload attributes.
"""

from abc import ABC, abstractmethod


class RemoteStore(ABC):
    """
    Abstract base class for object stores.

    Implementations:
    - S3RemoteStore: boto3-backed S3 bucket with CloudFront invalidation
    - InMemoryRemoteStore: dict-backed store for tests and plan previews
    """

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """
        List every object key at or under prefix.

        Raises:
            RemoteError: If the listing fails
        """
        pass

    @abstractmethod
    def upload(self, local_path: str, remote_key: str) -> None:
        """Write local file content to remote_key."""
        pass

    @abstractmethod
    def redirect(self, source_key: str, target: str) -> None:
        """Create a zero-content object at source_key redirecting to target."""
        pass

    @abstractmethod
    def delete(self, remote_key: str) -> None:
        """Remove an object."""
        pass

    @abstractmethod
    def invalidate(self, path_pattern: str) -> None:
        """Request cache invalidation for path_pattern."""
        pass
