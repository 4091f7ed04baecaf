"""
Shared CLI helpers.
"""

from __future__ import annotations

import click

from ..config import BackupConfig
from ..errors import ConfigurationError


def load_config(ctx: click.Context, require_credentials: bool = True, **overrides) -> BackupConfig:
    """Build config from the environment plus CLI overrides; exit 1 if invalid."""
    try:
        config = BackupConfig.from_env(**overrides)
        if require_credentials:
            config.validate()
    except ConfigurationError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        ctx.exit(1)
    return config
