"""
Repository Model — What the listing API tells us about a repository.

Only the fields the mirror needs are kept; everything else in the
API payload is ignored.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RepositoryDescriptor(BaseModel):
    """One repository in the workspace."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    slug: str = Field(min_length=1)
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.slug


class RepositoryPage(BaseModel):
    """A single page of GET /repositories/{workspace}."""

    model_config = ConfigDict(extra="ignore")

    values: List[RepositoryDescriptor] = Field(default_factory=list)
    next: Optional[str] = None
