"""
CLI inspection commands — list remote repositories, show mirror status.

Usage:
    python -m mirror_backup list [--json]
    python -m mirror_backup status [--json] [--backup-dir DIR]
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import click

from ..errors import ListingFailed
from ..logging_config import setup_logging
from .helpers import load_config


@click.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_repos(ctx: click.Context, as_json: bool) -> None:
    """List every repository in the workspace without syncing."""
    from ..mirror.lister import RepositoryLister

    config = load_config(ctx)
    setup_logging()

    try:
        repos = asyncio.run(RepositoryLister(config).list_all())
    except ListingFailed as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        ctx.exit(1)

    if as_json:
        click.echo(json.dumps([r.model_dump() for r in repos], indent=2))
        return

    click.echo(f"\n📦 {len(repos)} repositories in {config.workspace}\n")
    for repo in repos:
        state = "mirrored" if config.target_path(repo.slug).exists() else "new"
        click.echo(f"  {repo.slug:40} {repo.display_name} [{state}]")
    click.echo()


@click.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--backup-dir", type=click.Path(file_okay=False, path_type=Path),
              default=None, help="Directory holding <slug>.git mirrors")
@click.pass_context
def status(ctx: click.Context, as_json: bool, backup_dir: Optional[Path]) -> None:
    """Show the last recorded result for every mirrored repository."""
    from ..mirror.manifest import MirrorManifest

    config = load_config(ctx, require_credentials=False, backup_dir=backup_dir)
    manifest = MirrorManifest.load(config.manifest_path)

    if as_json:
        click.echo(json.dumps(manifest.to_api_dict(), indent=2, default=str))
        return

    click.echo("\n🔀 Mirror Status\n")
    click.echo(f"  Backup dir:  {config.backup_dir}")
    if manifest.last_run_iso:
        click.echo(f"  Last run:    {manifest.last_run_iso}")
        click.echo(f"  Duration:    {manifest.last_run_duration_seconds}s")
        click.echo(f"  Failures:    {manifest.last_run_failed}")
    click.echo()

    if not manifest.repos:
        click.echo("  No repositories recorded yet.")
        click.echo("  Run `mirror-backup run` to create the first mirrors.")
        click.echo()
        return

    for slug, record in sorted(manifest.repos.items()):
        icon = {"ok": "✅", "failed": "❌"}.get(record.status, "⏳")
        line = f"  {icon} {slug}: {record.status}"
        if record.last_action:
            line += f" ({record.last_action})"
        if record.last_error:
            line += f" — {record.last_error[:80]}"
        if record.last_sync_iso:
            line += f" [{record.last_sync_iso[:19]}]"
        click.echo(line)
    click.echo()
