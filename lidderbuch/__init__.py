"""Lidderbuch — an offline songbook kept in sync with its web service."""

from .models import MergeOutcome, Paragraph, Song, SpecialCategory, SyncResult
from .songbook import Songbook, SongbookSnapshot

__all__ = [
    "MergeOutcome",
    "Paragraph",
    "Song",
    "Songbook",
    "SongbookSnapshot",
    "SpecialCategory",
    "SyncResult",
]
