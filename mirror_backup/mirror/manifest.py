"""
Mirror Manifest — Last known sync result for every repository.

Stored as JSON next to the mirrors (<backup_dir>/.mirror-manifest.json).
It is informational only: whether a mirror exists on disk still decides
clone vs update.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_FAILED = "failed"


@dataclass
class RepoRecord:
    """Outcome of the most recent sync of one repository."""

    slug: str
    name: str = ""
    last_action: Optional[str] = None  # clone, update
    status: str = "unknown"  # ok, failed, unknown
    last_sync_iso: Optional[str] = None
    last_error: Optional[str] = None
    last_success_iso: Optional[str] = None

    def mark_ok(self, action: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self.last_action = action
        self.status = STATUS_OK
        self.last_sync_iso = now
        self.last_success_iso = now
        self.last_error = None

    def mark_failed(self, action: Optional[str], error: str) -> None:
        self.last_action = action
        self.status = STATUS_FAILED
        self.last_sync_iso = datetime.now(timezone.utc).isoformat()
        self.last_error = error


@dataclass
class MirrorManifest:
    """All repository records plus a summary of the last run."""

    repos: Dict[str, RepoRecord] = field(default_factory=dict)
    last_run_iso: Optional[str] = None
    last_run_duration_seconds: Optional[float] = None
    last_run_failed: int = 0

    @classmethod
    def load(cls, path: Path) -> "MirrorManifest":
        """Load manifest from file. Missing or unreadable files give an empty one."""
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load mirror manifest {path}: {e}")
            return cls()

    def save(self, path: Path) -> None:
        """Write to a temp file, then rename over the old manifest."""
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(self._to_dict(), f, indent=4)
            f.write("\n")
        temp_path.replace(path)
        logger.debug(f"Manifest saved: {len(self.repos)} repositories -> {path}")

    def ensure(self, slug: str, name: str = "") -> RepoRecord:
        """Get or create the record for a repository."""
        record = self.repos.get(slug)
        if record is None:
            record = RepoRecord(slug=slug, name=name)
            self.repos[slug] = record
        elif name:
            record.name = name
        return record

    def get(self, slug: str) -> Optional[RepoRecord]:
        return self.repos.get(slug)

    def finish_run(self, started_at: datetime, duration_seconds: float, failed: int) -> None:
        self.last_run_iso = started_at.isoformat()
        self.last_run_duration_seconds = round(duration_seconds, 3)
        self.last_run_failed = failed

    @classmethod
    def _from_dict(cls, data: dict) -> "MirrorManifest":
        repos = {}
        for slug, r in data.get("repos", {}).items():
            repos[slug] = RepoRecord(
                slug=slug,
                name=r.get("name", ""),
                last_action=r.get("last_action"),
                status=r.get("status", "unknown"),
                last_sync_iso=r.get("last_sync_iso"),
                last_error=r.get("last_error"),
                last_success_iso=r.get("last_success_iso"),
            )
        return cls(
            repos=repos,
            last_run_iso=data.get("last_run_iso"),
            last_run_duration_seconds=data.get("last_run_duration_seconds"),
            last_run_failed=data.get("last_run_failed", 0),
        )

    def _to_dict(self) -> dict:
        return {
            "last_run_iso": self.last_run_iso,
            "last_run_duration_seconds": self.last_run_duration_seconds,
            "last_run_failed": self.last_run_failed,
            "repos": {slug: asdict(r) for slug, r in sorted(self.repos.items())},
        }

    def to_api_dict(self) -> dict:
        """Plain dict for `status --json`."""
        return self._to_dict()
