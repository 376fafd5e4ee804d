"""
Upload policy - per-object attributes keyed by path patterns.

Resolution rules:
- access: glob -> canned ACL, first match wins, default "private"
- content_type: extension -> MIME type, falls back to mimetypes, then octet-stream
- content_encoding: extension -> encoding, no default
- cache_control: glob -> header value, first match wins, no default
- metadata: glob -> {key: value}, every matching glob is merged in order

Globs are matched against the remote key with fnmatch. Extensions are
matched case-insensitively and may be given with or without the dot.
"""

import mimetypes
import posixpath
from dataclasses import dataclass, field
from fnmatch import fnmatch
from typing import Optional

DEFAULT_ACL = "private"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadAttributes:
    """Resolved attributes for a single object."""
    acl: str = DEFAULT_ACL
    content_type: str = DEFAULT_CONTENT_TYPE
    content_encoding: Optional[str] = None
    cache_control: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)

    def to_put_args(self) -> dict:
        """Translate to boto3 put_object keyword arguments."""
        args: dict = {
            "ACL": self.acl,
            "ContentType": self.content_type,
        }
        if self.content_encoding:
            args["ContentEncoding"] = self.content_encoding
        if self.cache_control:
            args["CacheControl"] = self.cache_control
        if self.metadata:
            args["Metadata"] = dict(self.metadata)
        return args


def _normalize_extension(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"


def _first_match(patterns: dict[str, str], key: str) -> Optional[str]:
    for pattern, value in patterns.items():
        if fnmatch(key, pattern):
            return value
    return None


class UploadPolicy:
    """Resolve UploadAttributes for remote keys."""

    def __init__(
        self,
        access: Optional[dict[str, str]] = None,
        cache_control: Optional[dict[str, str]] = None,
        content_type: Optional[dict[str, str]] = None,
        content_encoding: Optional[dict[str, str]] = None,
        metadata: Optional[dict[str, dict[str, str]]] = None,
    ):
        self.access = dict(access or {})
        self.cache_control = dict(cache_control or {})
        self.content_type = {_normalize_extension(k): v for k, v in (content_type or {}).items()}
        self.content_encoding = {_normalize_extension(k): v for k, v in (content_encoding or {}).items()}
        self.metadata = {k: dict(v) for k, v in (metadata or {}).items()}

    def resolve(self, local_path: str, remote_key: str) -> UploadAttributes:
        """
        Resolve attributes for one upload.

        Args:
            local_path: Local file path (used for MIME type guessing)
            remote_key: Destination key (matched against globs)

        Returns:
            UploadAttributes for the object
        """
        ext = posixpath.splitext(remote_key)[1].lower()

        content_type = self.content_type.get(ext)
        if content_type is None:
            guessed, _ = mimetypes.guess_type(local_path)
            content_type = guessed or DEFAULT_CONTENT_TYPE

        metadata: dict[str, str] = {}
        for pattern, values in self.metadata.items():
            if fnmatch(remote_key, pattern):
                metadata.update(values)

        return UploadAttributes(
            acl=_first_match(self.access, remote_key) or DEFAULT_ACL,
            content_type=content_type,
            content_encoding=self.content_encoding.get(ext),
            cache_control=_first_match(self.cache_control, remote_key),
            metadata=metadata,
        )
