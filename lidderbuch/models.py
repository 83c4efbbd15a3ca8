"""
Data Models for the Lidderbuch songbook

Songs are immutable pydantic models: a newer version of a song replaces the
old instance rather than mutating it.  The bookmark flag is a local-only
annotation that the remote service never owns.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Song models
# ---------------------------------------------------------------------------

class Paragraph(BaseModel):
    """One block of lyrics, either a verse or a refrain."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Paragraph identifier within the song")
    type: str = Field("verse", description="'verse' or 'refrain'")
    content: str = Field("", description="Paragraph text, lines separated by newlines")

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in ("verse", "refrain"):
            raise ValueError(f"unknown paragraph type {v!r}")
        return v


class Song(BaseModel):
    """A songbook entry as delivered by the web service."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Stable song identifier")
    name: str = Field(..., description="Song title")
    language: Optional[str] = Field(None, description="Language code (e.g. 'lb')")
    category: str = Field(..., description="Category label used for grouping")
    position: int = Field(..., description="Canonical display order (ascending)")
    number: Optional[int] = Field(None, description="Printed song number")
    way: Optional[str] = Field(None, description="Melody the song is sung to")
    year: Optional[int] = Field(None, description="Year of writing")
    lyrics_author: Optional[str] = Field(None, description="Author of the lyrics")
    music_author: Optional[str] = Field(None, description="Composer")
    url: Optional[str] = Field(None, description="Canonical web URL")
    paragraphs: List[Paragraph] = Field(default_factory=list, description="Lyrics blocks")
    update_time: datetime = Field(..., description="Last modification at the source of truth")
    bookmarked: bool = Field(False, description="Local-only bookmark annotation")

    @field_validator("update_time")
    @classmethod
    def _timezone_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("update_time must be timezone-aware")
        return v

    @property
    def lyrics(self) -> str:
        return "\n\n".join(p.content for p in self.paragraphs)

    def with_bookmark(self, bookmarked: bool) -> "Song":
        if bookmarked == self.bookmarked:
            return self
        return self.model_copy(update={"bookmarked": bookmarked})


# ---------------------------------------------------------------------------
# Merge / category types
# ---------------------------------------------------------------------------

class MergeOutcome(str, Enum):
    """Result of integrating one incoming song into the collection."""

    INSERTED = "inserted"
    REPLACED = "replaced"
    IGNORED = "ignored"

    @property
    def changed(self) -> bool:
        return self is not MergeOutcome.IGNORED


class SpecialCategory(Enum):
    """Synthetic categories that are not real song categories.

    Not a ``str`` enum, so it never compares equal to a song category.
    """

    BOOKMARKS = "★bookmarks"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class SyncResult(BaseModel):
    """Summary of one synchronization run."""

    since: Optional[datetime] = Field(None, description="Cursor sent to the web service")
    fetched: int = Field(0, ge=0, description="Songs returned by the web service")
    inserted: int = Field(0, ge=0)
    replaced: int = Field(0, ge=0)
    ignored: int = Field(0, ge=0)
    failed: bool = Field(False, description="True when the fetch aborted")
    error: Optional[str] = Field(None, description="Failure message when failed")

    @property
    def changed(self) -> bool:
        return (self.inserted + self.replaced) > 0

    def count(self, outcome: MergeOutcome) -> None:
        if outcome is MergeOutcome.INSERTED:
            self.inserted += 1
        elif outcome is MergeOutcome.REPLACED:
            self.replaced += 1
        else:
            self.ignored += 1
