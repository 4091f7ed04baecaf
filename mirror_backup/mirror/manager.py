"""
Backup Orchestrator — One full backup run.

    list repositories ─> fan out one sync task per repository
                      ─> wait for all of them ─> RunOutcome

A repository that fails is logged and recorded; it never stops its
siblings. Only a listing failure aborts the run (ListingFailed is
left to propagate to the caller).

## Usage

    from mirror_backup.mirror.manager import BackupOrchestrator

    orchestrator = BackupOrchestrator(config)
    outcome = asyncio.run(orchestrator.run())
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from ..config import BackupConfig
from ..errors import SyncFailed, redact_credentials
from ..models.outcome import RepoResult, RunOutcome
from ..models.repository import RepositoryDescriptor
from .lister import RepositoryLister
from .manifest import MirrorManifest
from .sync import MirrorSynchronizer

logger = logging.getLogger(__name__)


class BackupOrchestrator:
    """
    Drives lister and synchronizer for a whole workspace.

    Concurrency is capped at config.max_concurrency simultaneous
    repositories; each task writes only to its own <slug>.git.
    """

    def __init__(
        self,
        config: BackupConfig,
        lister: Optional[RepositoryLister] = None,
        synchronizer: Optional[MirrorSynchronizer] = None,
        manifest: Optional[MirrorManifest] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.lister = lister or RepositoryLister(config)
        self.synchronizer = synchronizer or MirrorSynchronizer(config)
        self.manifest = manifest if manifest is not None else MirrorManifest.load(
            config.manifest_path
        )
        self._clock = clock

    async def run(self) -> RunOutcome:
        """
        Back up every repository in the workspace.

        Raises:
            ListingFailed: no repository list could be obtained
        """
        start = self._clock()
        logger.info(f"Bitbucket backup started for workspace {self.config.workspace}")
        self.config.backup_dir.mkdir(parents=True, exist_ok=True)

        repos = await self.lister.list_all()

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        results = await asyncio.gather(
            *(self._backup_one(repo, semaphore) for repo in repos)
        )

        duration = self._clock() - start
        outcome = RunOutcome(
            attempted=len(repos),
            failed=[r.slug for r in results if r.status == "failed"],
            duration_seconds=duration,
            results=list(results),
        )

        self.manifest.finish_run(self.config.run_started_at, duration, len(outcome.failed))
        self._save_manifest()

        if outcome.failed:
            logger.warning(
                f"{len(outcome.failed)}/{outcome.attempted} repositories failed: "
                f"{', '.join(outcome.failed)}"
            )
        logger.info(
            f"Backup completed in {duration:.1f}s "
            f"({outcome.succeeded}/{outcome.attempted} repositories synced)"
        )
        return outcome

    async def _backup_one(
        self, repo: RepositoryDescriptor, semaphore: asyncio.Semaphore
    ) -> RepoResult:
        record = self.manifest.ensure(repo.slug, repo.name)

        async with semaphore:
            try:
                action = await self.synchronizer.sync(repo)
            except SyncFailed as e:
                return self._failed(repo, e.action, e.cause)
            except Exception as e:
                # Unexpected; still confined to this repository
                return self._failed(repo, None, e)

        record.mark_ok(action)
        return RepoResult(slug=repo.slug, action=action, status="ok")

    def _failed(
        self, repo: RepositoryDescriptor, action: Optional[str], cause: BaseException
    ) -> RepoResult:
        error = redact_credentials(str(cause))
        logger.error(
            f"Backup failed for {repo.slug}: {error}",
            exc_info=True,
            extra={"slug": repo.slug},
        )
        action = action or self.synchronizer.action_for(repo)
        self.manifest.ensure(repo.slug).mark_failed(action, error)
        return RepoResult(slug=repo.slug, action=action, status="failed", error=error)

    def _save_manifest(self) -> None:
        try:
            self.manifest.save(self.config.manifest_path)
        except OSError as e:
            logger.error(f"Failed to save mirror manifest: {e}")
