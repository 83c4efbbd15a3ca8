"""
Songbook serialization — songs ⇄ JSON blobs.

The same JSON array-of-objects schema is used for the web service response,
the local songs file and the bundled seed file.  Entries that fail
validation are dropped one by one; only a blob that is not a JSON array at
all is an error.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Iterable, Optional, Union

from loguru import logger
from pydantic import ValidationError

from .models import Song


class SongDataError(ValueError):
    """Raised when a blob is not a JSON array of song objects."""


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def format_timestamp(value: datetime) -> str:
    """Format a cursor as ``YYYY-MM-DDTHH:MM:SS±HH:MM`` (second precision)."""
    if value.tzinfo is None:
        raise ValueError("cursor timestamps must be timezone-aware")
    return value.replace(microsecond=0).isoformat(timespec="seconds")


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------

def songs_from_json(data: Union[bytes, str]) -> list[Song]:
    """
    Interpret ``data`` as a JSON array of songs.

    Raises:
        SongDataError: the blob is not valid JSON or not an array.
    """
    try:
        entries = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SongDataError(f"invalid songs JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise SongDataError(f"expected a JSON array, got {type(entries).__name__}")

    songs: list[Song] = []
    skipped = 0
    for entry in entries:
        song = song_from_json(entry)
        if song is None:
            skipped += 1
            continue
        songs.append(song)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed song entries ({len(songs)} kept)")
    return songs


def song_from_json(entry: object) -> Optional[Song]:
    """Build a song from one decoded JSON object, or ``None`` if malformed."""
    if not isinstance(entry, dict):
        logger.debug(f"Song entry is not an object: {entry!r:.80}")
        return None
    try:
        return Song.model_validate(entry)
    except ValidationError as exc:
        logger.debug(f"Song {entry.get('id', '?')} rejected: {exc.error_count()} error(s)")
        return None


def songs_to_json(songs: Iterable[Song]) -> bytes:
    """Serialize songs, including the local bookmark flag, to a JSON blob."""
    payload = [song.model_dump(mode="json") for song in songs]
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")
