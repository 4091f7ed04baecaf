"""
Mirror Synchronizer — Clone or update one bare mirror.

State is whatever is on disk: if <backup_dir>/<slug>.git exists the
repository is updated, otherwise it is cloned.

    absent  -> git clone --mirror <auth-url> <target>
    present -> git remote set-url origin <auth-url>   (credentials rotate)
               git fetch --all --prune

Every git call is retried independently. Failures are re-raised as
SyncFailed; isolating them is the orchestrator's job.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from ..config import BackupConfig
from ..errors import ExhaustedRetries, SyncFailed, TransientGitFailure
from ..models.repository import RepositoryDescriptor
from ..reliability.retry import Sleep, run_with_retry
from .process import ProcessSpec, run_process

logger = logging.getLogger(__name__)

ACTION_CLONE = "clone"
ACTION_UPDATE = "update"

Runner = Callable[[ProcessSpec], Awaitable[None]]


class MirrorSynchronizer:
    """Decides clone vs update and drives the git subprocesses."""

    def __init__(
        self,
        config: BackupConfig,
        runner: Optional[Runner] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.config = config
        self.runner = runner or run_process
        self._sleep = sleep

    def action_for(self, repo: RepositoryDescriptor) -> str:
        if self.config.target_path(repo.slug).exists():
            return ACTION_UPDATE
        return ACTION_CLONE

    async def sync(self, repo: RepositoryDescriptor) -> str:
        """
        Bring the mirror for `repo` up to date.

        Returns the action taken ("clone" or "update").

        Raises:
            SyncFailed: a git step exhausted its retries
        """
        action = self.action_for(repo)
        target = self.config.target_path(repo.slug)
        try:
            if action == ACTION_UPDATE:
                await self._update(repo, target)
            else:
                await self._clone(repo, target)
        except (ExhaustedRetries, OSError) as e:
            raise SyncFailed(repo.slug, e, action=action) from e
        return action

    # ─── Steps ──────────────────────────────────────────────

    async def _clone(self, repo: RepositoryDescriptor, target: Path) -> None:
        logger.info(f"Cloning: {repo.slug}", extra={"slug": repo.slug})
        url = self.config.auth_clone_url(repo.slug)

        async def attempt() -> None:
            if target.exists():
                # Left over from a failed attempt; git refuses non-empty targets
                logger.warning(f"Removing partial clone at {target}")
                await asyncio.to_thread(shutil.rmtree, target)
            await self.runner(self._spec(
                ["clone", "--mirror", url, str(target)], self.config.backup_dir
            ))

        await self._git_with_retry(attempt, f"{repo.slug} clone")
        logger.info(f"Successfully cloned: {repo.slug}", extra={"slug": repo.slug})

    async def _update(self, repo: RepositoryDescriptor, target: Path) -> None:
        logger.info(
            f"Updating: {repo.display_name} ({repo.slug})", extra={"slug": repo.slug}
        )
        url = self.config.auth_clone_url(repo.slug)

        set_url = self._spec(["remote", "set-url", "origin", url], target)
        await self._git_with_retry(lambda: self.runner(set_url), f"{repo.slug} set-url")

        fetch = self._spec(["fetch", "--all", "--prune"], target)
        await self._git_with_retry(lambda: self.runner(fetch), f"{repo.slug} fetch")

        logger.info(f"Successfully updated: {repo.slug}", extra={"slug": repo.slug})

    # ─── Helpers ────────────────────────────────────────────

    def _spec(self, arguments: List[str], cwd: Path) -> ProcessSpec:
        return ProcessSpec(
            command=self.config.git_executable,
            arguments=arguments,
            working_directory=cwd,
            timeout=self.config.git_timeout_seconds,
        )

    async def _git_with_retry(
        self, operation: Callable[[], Awaitable[None]], description: str
    ) -> None:
        await run_with_retry(
            operation,
            self.config.retry,
            description,
            retry_on=(TransientGitFailure, OSError),
            sleep=self._sleep,
        )
