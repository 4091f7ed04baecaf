"""
Mirror Backup — CLI Entry Point

Usage:
    python -m mirror_backup run [--backup-dir DIR] [--logs-dir DIR] [--concurrency N]
    python -m mirror_backup list [--json]
    python -m mirror_backup status [--json]
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from .cli.helpers import load_config
from .cli.status import list_repos, status
from .errors import ListingFailed
from .logging_config import setup_logging
from .mirror.manager import BackupOrchestrator

logger = logging.getLogger(__name__)


@click.group()
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path),
              default=".env", show_default=True, help="Environment file to load")
def cli(env_file: Path) -> None:
    """Mirror Backup — bare mirrors of every repository in a workspace."""
    if env_file.exists():
        load_dotenv(env_file)


@cli.command()
@click.option("--backup-dir", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Directory holding <slug>.git mirrors")
@click.option("--logs-dir", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Directory for per-run error logs")
@click.option("--concurrency", "max_concurrency", type=int, default=None,
              help="Maximum repositories synced at once")
@click.pass_context
def run(
    ctx: click.Context,
    backup_dir: Optional[Path],
    logs_dir: Optional[Path],
    max_concurrency: Optional[int],
) -> None:
    """Clone or update every repository in the workspace."""
    config = load_config(
        ctx, backup_dir=backup_dir, logs_dir=logs_dir, max_concurrency=max_concurrency
    )
    setup_logging(error_log=config.error_log_path)

    try:
        outcome = asyncio.run(BackupOrchestrator(config).run())
    except ListingFailed as e:
        logger.error(f"Backup failed: {e}", exc_info=True)
        ctx.exit(1)

    click.echo("")
    click.echo(f"  Repositories: {outcome.attempted}")
    click.echo(f"  Synced:       {outcome.succeeded}")
    click.echo(f"  Failed:       {len(outcome.failed)}")
    for slug in outcome.failed:
        click.secho(f"    ✗ {slug}", fg="red")
    click.echo(f"  Duration:     {outcome.duration_seconds:.1f}s")


cli.add_command(list_repos)
cli.add_command(status)


if __name__ == "__main__":
    cli()
