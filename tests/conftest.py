"""
Shared fixtures for mirror backup tests.

Provides a config rooted in tmp_path, a sleep stand-in that records
backoff delays instead of waiting, and a fake git runner that records
every ProcessSpec and can be told to fail.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from mirror_backup.config import BackupConfig, RetryPolicy
from mirror_backup.errors import NonZeroExit
from mirror_backup.mirror.process import ProcessSpec


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def git_verb(spec: ProcessSpec) -> str:
    """clone / set-url / fetch for a git ProcessSpec."""
    if spec.arguments[:2] == ["remote", "set-url"]:
        return "set-url"
    return spec.arguments[0]


class FakeGit:
    """
    Stands in for run_process.

    `fail` receives each spec and returns an exception to raise, or None
    for success. A successful (or failing, with partial=True) clone
    creates the target directory like real git would.
    """

    def __init__(
        self,
        fail: Optional[Callable[[ProcessSpec], Optional[BaseException]]] = None,
        partial: bool = False,
    ):
        self.calls: List[ProcessSpec] = []
        self.target_existed: List[bool] = []
        self.fail = fail or (lambda spec: None)
        self.partial = partial

    async def __call__(self, spec: ProcessSpec) -> None:
        self.calls.append(spec)
        verb = git_verb(spec)
        target = Path(spec.arguments[-1]) if verb == "clone" else None
        if target is not None:
            self.target_existed.append(target.exists())

        error = self.fail(spec)
        if error is not None:
            if target is not None and self.partial:
                (target / "objects").mkdir(parents=True, exist_ok=True)
            raise error

        if target is not None:
            (target / "refs").mkdir(parents=True, exist_ok=True)

    @property
    def verbs(self) -> List[str]:
        return [git_verb(spec) for spec in self.calls]

    def count(self, verb: str) -> int:
        return self.verbs.count(verb)


def exit_128(spec: ProcessSpec) -> NonZeroExit:
    return NonZeroExit(spec.argv, 128)


@pytest.fixture
def config(tmp_path: Path) -> BackupConfig:
    """Config with credentials that need URL-encoding and a fast retry policy."""
    backup_dir = tmp_path / "downloads"
    backup_dir.mkdir()
    return BackupConfig(
        workspace="acme",
        username="alice@example.com",
        app_password="p@ss/word",
        backup_dir=backup_dir,
        logs_dir=tmp_path / "logs",
        retry=RetryPolicy(max_attempts=3, base_delay_seconds=0.5),
        git_timeout_seconds=5,
        max_concurrency=4,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
