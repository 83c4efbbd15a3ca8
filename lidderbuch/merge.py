"""
Merge Engine — reconcile one incoming song against the collection.

The collection is an insertion-ordered ``dict`` keyed by song id, so a
replace keeps the song in the same slot and an insert appends.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .models import MergeOutcome, Song

Collection = dict  # dict[int, Song]


def integrate_song(
    collection: Collection,
    incoming: Song,
    preserve_bookmark: bool,
) -> MergeOutcome:
    """
    Insert, replace or ignore ``incoming``.

    A known song is only replaced by a strictly newer ``update_time``; equal
    or older versions are discarded, which makes re-delivery harmless.  With
    ``preserve_bookmark`` the stored version keeps the current bookmark flag,
    since the web service does not own that annotation.

    Does not rebuild indices or notify anyone; callers batch that.
    """
    current = collection.get(incoming.id)
    if current is None:
        collection[incoming.id] = incoming
        return MergeOutcome.INSERTED

    if incoming.update_time <= current.update_time:
        return MergeOutcome.IGNORED

    if preserve_bookmark:
        incoming = incoming.with_bookmark(current.bookmarked)
    collection[incoming.id] = incoming
    return MergeOutcome.REPLACED


def collection_from_songs(songs: Iterable[Song]) -> Collection:
    """Build a collection; later duplicates go through the normal merge rule."""
    collection: Collection = {}
    for song in songs:
        integrate_song(collection, song, preserve_bookmark=False)
    return collection


def latest_update_time(songs: Iterable[Song]):
    """Newest ``update_time`` in ``songs``; ``None`` when empty."""
    latest: Optional[Song] = None
    for song in songs:
        if latest is None or song.update_time > latest.update_time:
            latest = song
    return latest.update_time if latest else None
