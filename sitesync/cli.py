"""
CLI interface for sitesync.

Provides commands to preview and run a sync, and to create a default
configuration file.

Configuration is read from SITESYNC_HOME/config.yaml (or --config) and
command-line flags override individual settings. This is the only layer
that turns errors into exit codes.
"""

import json
from pathlib import Path

import click
import yaml

from sitesync import __version__
from sitesync.errors import SiteSyncError


SYNC_OPTIONS = [
    click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
                 help="Path to config.yaml (default: $SITESYNC_HOME/config.yaml)"),
    click.option("--bucket", help="Target bucket"),
    click.option("--source", help="Local directory to sync"),
    click.option("--target", help="Remote prefix"),
    click.option("--delete", is_flag=True, help="Delete remote objects with no local counterpart"),
    click.option("--max-concurrency", type=click.IntRange(min=1), help="Maximum in-flight remote calls"),
    click.option("--log-level", default="INFO", show_default=True,
                 type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)),
    click.option("--log-format", default="pretty", show_default=True,
                 type=click.Choice(["pretty", "structured"])),
]


def _sync_options(func):
    """Apply the options shared by `sync` and `plan`."""
    for option in reversed(SYNC_OPTIONS):
        func = option(func)
    return func


def _load(config_path, **overrides):
    """Load config from file (if present) and apply flag overrides."""
    from sitesync.config import SyncConfig, get_sitesync_home, load_config

    if config_path is None and not (get_sitesync_home() / "config.yaml").exists():
        config = SyncConfig()
    else:
        config = load_config(config_path)
    return config.with_overrides(**overrides)


def _print_settings(config) -> None:
    click.echo("Sync settings")
    click.echo(f"Bucket                      : {config.bucket}")
    click.echo(f"Delete?                     : {config.delete}")
    click.echo(f"Max concurrency             : {config.max_concurrency}")
    click.echo("File paths (sanitized)")
    click.echo(f"Source                      : {config.source}")
    click.echo(f"Target (trimmed for prefix) : {config.target}")
    if config.cloudfront_distribution:
        click.echo(f"CloudFront distribution     : {config.cloudfront_distribution}")


@click.group()
@click.version_option(version=__version__, prog_name="sitesync")
def main():
    """
    sitesync - Synchronize a local directory to an S3 bucket.

    Uploads local files, creates redirect objects, optionally deletes
    remote objects with no local counterpart, and optionally invalidates
    a CloudFront distribution afterwards.
    """


@main.command("sync")
@_sync_options
@click.option("--dry-run", is_flag=True, help="Log mutating calls instead of making them")
def sync(config_path, bucket, source, target, delete, max_concurrency, log_level, log_format, dry_run):
    """
    Run a sync.

    Examples:

        sitesync sync

        sitesync sync --bucket my-site --source public --delete

        sitesync sync --dry-run --log-level DEBUG
    """
    from sitesync.pipeline import run_sync
    from sitesync.utils import setup_logging

    setup_logging(log_level, log_format)

    try:
        config = _load(
            config_path,
            bucket=bucket,
            source=source,
            target=target,
            delete=True if delete else None,
            max_concurrency=max_concurrency,
            dry_run=True if dry_run else None,
        )
        sanitized = config.sanitize()
        if config.dry_run:
            click.echo("=" * 50)
            click.echo("=== DRY RUN MODE === (no remote writes)")
            click.echo("=" * 50)
        _print_settings(sanitized)
        click.echo(f'Synchronizing with bucket "{sanitized.bucket}"')
        report = run_sync(config)
    except SiteSyncError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1)

    summary = ", ".join(f"{action}={count}" for action, count in report.summary.items())
    click.echo(f"✓ sync completed ({summary})")


@main.command("plan")
@_sync_options
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
def plan(config_path, bucket, source, target, delete, max_concurrency, log_level, log_format, as_json):
    """
    Show the jobs a sync would run, without running them.

    Only the remote listing is read.

    Examples:

        sitesync plan --delete

        sitesync plan --json
    """
    from sitesync.pipeline import preview_sync
    from sitesync.plan_builder import summarize_plan
    from sitesync.utils import setup_logging

    setup_logging(log_level, log_format)

    try:
        config = _load(
            config_path,
            bucket=bucket,
            source=source,
            target=target,
            delete=True if delete else None,
            max_concurrency=max_concurrency,
        )
        jobs = preview_sync(config)
    except SiteSyncError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps([job.to_dict() for job in jobs], indent=2))
        return

    for job in jobs:
        click.echo(f"{job.action.value:<17} {job.local or '-'} -> {job.remote}")
    summary = ", ".join(f"{action}={count}" for action, count in summarize_plan(jobs).items())
    click.echo(f"\n{len(jobs)} job(s): {summary}")


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize sitesync configuration."""
    from sitesync.config import default_config_dict, get_sitesync_home

    home = get_sitesync_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    cfg_path.write_text(yaml.safe_dump(default_config_dict(), sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# AWS_ACCESS_KEY_ID=...\n# AWS_SECRET_ACCESS_KEY=...\n# AWS_REGION=...\n")

    click.echo(f"Initialized sitesync config at {cfg_path}")


if __name__ == "__main__":
    main()
