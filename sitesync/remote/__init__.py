"""
sitesync.remote - RemoteStore boundary and its implementations.

- RemoteStore: abstract contract consumed by the planner and executor
- S3RemoteStore: boto3-backed bucket with CloudFront invalidation
- InMemoryRemoteStore: dict-backed store for tests and plan previews
"""

from .base import RemoteStore
from .memory import InMemoryRemoteStore
from .s3 import S3RemoteStore

__all__ = ["RemoteStore", "InMemoryRemoteStore", "S3RemoteStore"]
