"""Data models shared across the backup pipeline."""

from .outcome import RepoResult, RunOutcome
from .repository import RepositoryDescriptor, RepositoryPage

__all__ = [
    "RepositoryDescriptor",
    "RepositoryPage",
    "RepoResult",
    "RunOutcome",
]
