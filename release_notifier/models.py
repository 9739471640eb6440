from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COMPONENT = "general"
UNKNOWN_AUTHOR = "unknown"


class ChangeType(str, Enum):
    FEATURES = "features"
    BUGFIXES = "bugfixes"


class ChangeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    component: str = Field(default=DEFAULT_COMPONENT, description="Short label, e.g. the conventional-commit scope")
    message: str = Field(..., min_length=1, description="Human readable description of the change")
    change_url: str = Field(..., description="Absolute URL of the originating commit or PR")
    ticket_ref: Optional[str] = Field(default=None, description="Issue tracker ticket, e.g. PROJ-42")
    author: Optional[str] = Field(default=None, description="GitHub login, only set for GitHub releases")

    @property
    def dedup_key(self) -> tuple[str, str]:
        return self.component, self.message


class Release(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1)
    version_tag: Optional[str] = None
    previous_version_tag: Optional[str] = None
    release_url: str
    release_date: date
    features: List[ChangeEntry] = Field(default_factory=list)
    bugfixes: List[ChangeEntry] = Field(default_factory=list)


class DiffStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    files_changed: int = Field(default=0, ge=0)
    insertions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)


class PlatformRelease(BaseModel):
    """The subset of a GitHub release object the adapter needs."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    published_at: datetime
    html_url: str
    body: str = ""

    @classmethod
    def from_github(cls, release: Any) -> "PlatformRelease":
        # Drafts have no published_at; fall back to the creation time.
        published = release.published_at or release.created_at
        return cls(
            tag_name=release.tag_name,
            published_at=published,
            html_url=release.html_url,
            body=release.body or "",
        )
