"""
Configuration management for sitesync.

Loads config.yaml from SITESYNC_HOME (default ~/.config/sitesync) or an
explicit path, validates it into a SyncConfig, and optionally loads an
env file (AWS_* credentials etc.) before any client is built.

The planner and executor never read the environment themselves; they
receive plain values from SyncConfig.
"""

import os
import posixpath
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from sitesync.errors import ConfigError


DEFAULT_MAX_CONCURRENCY = 100
MISSING_BUCKET_MESSAGE = "Must set 'bucket'"


def get_sitesync_home() -> Path:
    """Return the config home directory (SITESYNC_HOME or ~/.config/sitesync)."""
    home = os.environ.get("SITESYNC_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/sitesync").expanduser()


@dataclass(frozen=True)
class SyncConfig:
    """
    Settings for one sync run.

    Attributes:
        bucket: Target bucket (required)
        source: Local directory to sync, relative to the working directory
        target: Remote prefix; leading separator is stripped by sanitize()
        delete: Delete remote keys with no local or redirect counterpart
        redirects: Redirect source key -> target location
        access: Glob -> canned ACL
        cache_control: Glob -> Cache-Control header
        content_type: Extension -> Content-Type
        content_encoding: Extension -> Content-Encoding
        metadata: Glob -> user metadata mapping
        cloudfront_distribution: Distribution to invalidate after a successful sync
        dry_run: Log mutating calls instead of making them
        path_style: Use path-style S3 addressing
        endpoint: Custom S3 endpoint URL (S3-compatible stores)
        region: AWS region
        access_key: Static access key (falls back to boto3 credential chain)
        secret_key: Static secret key
        max_concurrency: Upper bound on in-flight store calls (>= 1)
        env_file: Dotenv file loaded before clients are built
    """
    bucket: str = ""
    source: str = "."
    target: str = ""
    delete: bool = False
    redirects: dict[str, str] = field(default_factory=dict)
    access: dict[str, str] = field(default_factory=dict)
    cache_control: dict[str, str] = field(default_factory=dict)
    content_type: dict[str, str] = field(default_factory=dict)
    content_encoding: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, dict[str, str]] = field(default_factory=dict)
    cloudfront_distribution: Optional[str] = None
    dry_run: bool = False
    path_style: bool = False
    endpoint: Optional[str] = None
    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    env_file: Optional[str] = None

    @property
    def invalidate_enabled(self) -> bool:
        return bool(self.cloudfront_distribution)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncConfig":
        """
        Build a SyncConfig from a parsed YAML mapping.

        Raises:
            ConfigError: On unknown keys or wrongly typed values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

        for key in ("redirects", "access", "cache_control", "content_type", "content_encoding", "metadata"):
            value = data.get(key)
            if value is not None and not isinstance(value, dict):
                raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")

        values = {k: v for k, v in data.items() if v is not None}
        for key in ("redirects", "access", "cache_control", "content_type", "content_encoding"):
            if key in values:
                values[key] = {str(k): str(v) for k, v in values[key].items()}
        if "metadata" in values:
            for pattern, meta in values["metadata"].items():
                if not isinstance(meta, dict):
                    raise ConfigError(f"metadata for '{pattern}' must be a mapping")
            values["metadata"] = {
                str(p): {str(k): str(v) for k, v in meta.items()}
                for p, meta in values["metadata"].items()
            }
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "SyncConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def validate(self) -> None:
        """
        Validate required settings.

        Raises:
            ConfigError: If bucket is missing or max_concurrency is not a positive integer
        """
        if not self.bucket:
            raise ConfigError(MISSING_BUCKET_MESSAGE)
        if isinstance(self.max_concurrency, bool) or not isinstance(self.max_concurrency, int):
            raise ConfigError(f"max_concurrency must be an integer, got {self.max_concurrency!r}")
        if self.max_concurrency < 1:
            raise ConfigError(f"max_concurrency must be at least 1, got {self.max_concurrency}")

    def sanitize(self, cwd: Optional[str] = None) -> "SyncConfig":
        """
        Validate and normalize paths.

        - source is joined onto the working directory
        - target is normalized and loses one leading separator so it acts as a list prefix

        Args:
            cwd: Working directory (defaults to os.getcwd())

        Returns:
            Normalized copy of this config

        Raises:
            ConfigError: If validation fails
        """
        self.validate()
        cwd = cwd if cwd is not None else os.getcwd()
        source = os.path.normpath(os.path.join(cwd, self.source))

        target = self.target.replace("\\", "/")
        if target:
            target = posixpath.normpath(target)
            if target == ".":
                target = ""
        if target[:1] == "/":
            target = target[1:]

        return replace(self, source=source, target=target)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain mapping (secrets masked)."""
        data = asdict(self)
        for key in ("access_key", "secret_key"):
            if data.get(key):
                data[key] = "***"
        return data


def load_config(config_path: Optional[Path] = None) -> SyncConfig:
    """
    Load sync configuration from YAML.

    Args:
        config_path: Path to config file. Defaults to SITESYNC_HOME/config.yaml

    Returns:
        SyncConfig instance (not yet sanitized)

    Raises:
        ConfigError: If the file is missing, empty, not YAML or not a mapping
    """
    if config_path is None:
        config_path = get_sitesync_home() / "config.yaml"
    config_path = Path(config_path).expanduser()

    if not config_path.exists():
        raise ConfigError(f"sitesync config.yaml not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if not data:
        raise ConfigError(f"Configuration file is empty: {config_path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must be a mapping: {config_path}")

    config = SyncConfig.from_dict(data)
    load_env_file(config)
    return config


def load_env_file(config: SyncConfig) -> None:
    """Load config.env_file into os.environ without overriding existing values."""
    if not config.env_file:
        return
    env_path = Path(config.env_file).expanduser()
    if not env_path.exists():
        raise ConfigError(f"env_file not found: {env_path}")
    load_dotenv(env_path, override=False)


def default_config_dict() -> dict[str, Any]:
    """Default config.yaml contents written by `sitesync init`."""
    return {
        "bucket": "my-bucket",
        "source": "public",
        "target": "",
        "delete": False,
        "redirects": {},
        "access": {"*": "public-read"},
        "cache_control": {},
        "content_type": {},
        "content_encoding": {},
        "metadata": {},
        "cloudfront_distribution": None,
        "region": "us-east-1",
        "max_concurrency": DEFAULT_MAX_CONCURRENCY,
        "env_file": str(get_sitesync_home() / ".env"),
    }
