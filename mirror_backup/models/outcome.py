"""
Outcome Model — Result of one backup run.

Computed once when the run finishes; not persisted as-is (the
manifest keeps its own per-repository records).
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class RepoResult(BaseModel):
    """How a single repository's sync settled."""

    slug: str
    action: Literal["clone", "update"]
    status: Literal["ok", "failed"]
    error: Optional[str] = None


class RunOutcome(BaseModel):
    """Aggregate of all repository results in a run."""

    attempted: int = 0
    failed: List[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
    results: List[RepoResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return self.attempted - len(self.failed)

    @property
    def ok(self) -> bool:
        """True when every attempted repository synced."""
        return not self.failed
