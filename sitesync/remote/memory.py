"""
In-memory RemoteStore for tests and offline plan previews.

Records every call in order, can inject failures per key, can add
artificial latency, and tracks the peak number of concurrent calls.
"""

import threading
import time
from pathlib import Path
from typing import Iterable, Optional

from sitesync.errors import RemoteError

from .base import RemoteStore


class InMemoryRemoteStore(RemoteStore):
    """
    Dict-backed store.

    Attributes:
        objects: remote key -> bytes content
        redirects: source key -> redirect target
        invalidations: path patterns passed to invalidate(), in order
        calls: (operation, key) tuples in call-completion order
        max_in_flight: peak number of simultaneous calls observed
    """

    def __init__(
        self,
        keys: Optional[Iterable[str]] = None,
        fail_on: Optional[Iterable[str]] = None,
        latency: float = 0.0,
    ):
        self.objects: dict[str, bytes] = {key: b"" for key in (keys or [])}
        self.redirects: dict[str, str] = {}
        self.invalidations: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.fail_on = set(fail_on or [])
        self.latency = latency
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def _enter(self, operation: str, key: str) -> None:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                time.sleep(self.latency)
            if key in self.fail_on:
                raise RemoteError(operation, key, "injected failure")
        except BaseException:
            self._exit(operation, key)
            raise

    def _exit(self, operation: str, key: str) -> None:
        with self._lock:
            self.in_flight -= 1
            self.calls.append((operation, key))

    def list(self, prefix: str) -> list[str]:
        self._enter("list", prefix)
        try:
            return sorted(key for key in self.objects if key.startswith(prefix))
        finally:
            self._exit("list", prefix)

    def upload(self, local_path: str, remote_key: str) -> None:
        self._enter("upload", remote_key)
        try:
            self.objects[remote_key] = Path(local_path).read_bytes()
        except OSError as e:
            raise RemoteError("upload", remote_key, str(e)) from e
        finally:
            self._exit("upload", remote_key)

    def redirect(self, source_key: str, target: str) -> None:
        self._enter("redirect", source_key)
        try:
            self.objects[source_key] = b""
            self.redirects[source_key] = target
        finally:
            self._exit("redirect", source_key)

    def delete(self, remote_key: str) -> None:
        self._enter("delete", remote_key)
        try:
            self.objects.pop(remote_key, None)
            self.redirects.pop(remote_key, None)
        finally:
            self._exit("delete", remote_key)

    def invalidate(self, path_pattern: str) -> None:
        self._enter("invalidate", path_pattern)
        try:
            self.invalidations.append(path_pattern)
        finally:
            self._exit("invalidate", path_pattern)
