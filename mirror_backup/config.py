"""
Backup Configuration — Parse BITBUCKET_* / MIRROR_* environment variables.

One BackupConfig is built at startup and handed to every component.
Nothing reads the environment after that.

Minimal required config:
    BITBUCKET_USER=alice
    BITBUCKET_APP_PASSWORD=xxxxxxxx
    BITBUCKET_WORKSPACE=acme

Optional tuning:
    MIRROR_BACKUP_DIR=downloads
    MIRROR_LOGS_DIR=logs
    MIRROR_MAX_RETRIES=3
    MIRROR_RETRY_BASE_MS=1000
    MIRROR_GIT_TIMEOUT_SECONDS=300
    MIRROR_MAX_CONCURRENCY=8
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Mapping, Optional
from urllib.parse import quote

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.bitbucket.org/2.0"
DEFAULT_GIT_HOST = "bitbucket.org"
MANIFEST_FILENAME = ".mirror-manifest.json"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with exponential backoff (no jitter)."""

    max_attempts: int = 3
    base_delay_seconds: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Backoff before the attempt following `attempt` (1-indexed)."""
        return self.base_delay_seconds * (2 ** (attempt - 1))


@dataclass
class BackupConfig:
    """Everything a backup run needs, built once."""

    workspace: str
    username: str
    app_password: str
    backup_dir: Path = Path("downloads")
    logs_dir: Path = Path("logs")
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    git_timeout_seconds: float = 300.0
    max_concurrency: int = 8
    api_base_url: str = DEFAULT_API_BASE_URL
    git_host: str = DEFAULT_GIT_HOST
    page_length: int = 100
    request_timeout_seconds: float = 30.0
    git_executable: str = "git"
    run_started_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    manifest_path: Optional[Path] = None

    def __post_init__(self) -> None:
        # Absolute, since git runs with cwd set to these directories
        self.backup_dir = Path(self.backup_dir).resolve()
        self.logs_dir = Path(self.logs_dir).resolve()
        if self.manifest_path is None:
            self.manifest_path = self.backup_dir / MANIFEST_FILENAME
        else:
            self.manifest_path = Path(self.manifest_path).resolve()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "BackupConfig":
        """Build configuration from environment variables.

        Keyword overrides (e.g. from CLI options) win over the environment
        when they are not None.
        """
        env = os.environ if env is None else env

        retry = RetryPolicy(
            max_attempts=_int(env, "MIRROR_MAX_RETRIES", 3),
            base_delay_seconds=_int(env, "MIRROR_RETRY_BASE_MS", 1000) / 1000.0,
        )

        values = dict(
            workspace=env.get("BITBUCKET_WORKSPACE", ""),
            username=env.get("BITBUCKET_USER", ""),
            app_password=env.get("BITBUCKET_APP_PASSWORD", ""),
            backup_dir=Path(env.get("MIRROR_BACKUP_DIR", "downloads")),
            logs_dir=Path(env.get("MIRROR_LOGS_DIR", "logs")),
            retry=retry,
            git_timeout_seconds=float(_int(env, "MIRROR_GIT_TIMEOUT_SECONDS", 300)),
            max_concurrency=_int(env, "MIRROR_MAX_CONCURRENCY", 8),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})

        config = cls(**values)
        logger.debug(
            f"Loaded config: workspace={config.workspace}, "
            f"backup_dir={config.backup_dir}, concurrency={config.max_concurrency}"
        )
        return config

    def validate(self) -> None:
        """Raise ConfigurationError listing every problem found."""
        problems: List[str] = []
        if not self.workspace:
            problems.append("BITBUCKET_WORKSPACE is required")
        if not self.username:
            problems.append("BITBUCKET_USER is required")
        if not self.app_password:
            problems.append("BITBUCKET_APP_PASSWORD is required")
        if self.retry.max_attempts < 1:
            problems.append("max retry attempts must be >= 1")
        if self.retry.base_delay_seconds < 0:
            problems.append("retry base delay must not be negative")
        if self.git_timeout_seconds <= 0:
            problems.append("git timeout must be positive")
        if self.max_concurrency < 1:
            problems.append("max concurrency must be >= 1")
        if problems:
            raise ConfigurationError(problems)

    # ─── Derived values ─────────────────────────────────────

    @property
    def run_stamp(self) -> str:
        """Run start as ISO-8601 to the second, filesystem safe."""
        return self.run_started_at.strftime("%Y-%m-%dT%H:%M:%S").replace(":", "-")

    @property
    def error_log_path(self) -> Path:
        return self.logs_dir / f"error-{self.run_stamp}.log"

    def repositories_url(self) -> str:
        """First page of the workspace repository listing."""
        return (
            f"{self.api_base_url.rstrip('/')}/repositories/"
            f"{quote(self.workspace, safe='')}?pagelen={self.page_length}"
        )

    def auth_clone_url(self, slug: str) -> str:
        """HTTPS clone URL with credentials embedded."""
        user = quote(self.username, safe="")
        password = quote(self.app_password, safe="")
        return f"https://{user}:{password}@{self.git_host}/{self.workspace}/{slug}.git"

    def target_path(self, slug: str) -> Path:
        """Bare mirror location for a repository."""
        return self.backup_dir / f"{slug}.git"


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError([f"{name} must be an integer, got {raw!r}"]) from None
