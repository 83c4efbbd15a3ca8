"""Unit tests for the merge rules (insert / replace / ignore)."""

from datetime import datetime, timedelta, timezone

import pytest

from lidderbuch.merge import collection_from_songs, integrate_song, latest_update_time
from lidderbuch.models import MergeOutcome, Song

T0 = datetime(2015, 5, 13, 10, 0, tzinfo=timezone.utc)


def make_song(id, t=100, position=None, category="A", bookmarked=False, name=None):
    return Song(
        id=id,
        name=name or f"Song {id}",
        category=category,
        position=id if position is None else position,
        update_time=T0 + timedelta(seconds=t),
        bookmarked=bookmarked,
    )


@pytest.fixture
def collection():
    return collection_from_songs([make_song(1, t=100), make_song(2, t=100, bookmarked=True)])


class TestInsert:
    def test_unknown_song_is_inserted(self, collection):
        outcome = integrate_song(collection, make_song(3), preserve_bookmark=True)
        assert outcome is MergeOutcome.INSERTED
        assert list(collection) == [1, 2, 3]

    def test_insert_keeps_incoming_bookmark(self, collection):
        integrate_song(collection, make_song(3, bookmarked=True), preserve_bookmark=True)
        assert collection[3].bookmarked is True


class TestConflictResolution:
    @pytest.mark.parametrize("t", [99, 100])
    def test_older_or_equal_is_ignored(self, collection, t):
        before = dict(collection)
        outcome = integrate_song(collection, make_song(1, t=t, name="Changed"), preserve_bookmark=True)
        assert outcome is MergeOutcome.IGNORED
        assert collection == before

    def test_newer_replaces_in_same_slot(self, collection):
        outcome = integrate_song(collection, make_song(1, t=101, name="Changed"), preserve_bookmark=True)
        assert outcome is MergeOutcome.REPLACED
        assert list(collection) == [1, 2]
        assert collection[1].name == "Changed"
        assert collection[1].update_time == T0 + timedelta(seconds=101)

    def test_bookmark_preserved_on_replace(self, collection):
        integrate_song(collection, make_song(2, t=101, bookmarked=False), preserve_bookmark=True)
        assert collection[2].bookmarked is True

        integrate_song(collection, make_song(1, t=101, bookmarked=True), preserve_bookmark=True)
        assert collection[1].bookmarked is False

    def test_bookmark_taken_from_incoming_without_preserve(self, collection):
        integrate_song(collection, make_song(2, t=101, bookmarked=False), preserve_bookmark=False)
        assert collection[2].bookmarked is False


class TestIdempotence:
    def test_second_application_is_ignored(self, collection):
        incoming = make_song(1, t=150)
        assert integrate_song(collection, incoming, True) is MergeOutcome.REPLACED
        state = dict(collection)
        assert integrate_song(collection, incoming, True) is MergeOutcome.IGNORED
        assert collection == state

    def test_outcome_changed_flag(self):
        assert MergeOutcome.INSERTED.changed
        assert MergeOutcome.REPLACED.changed
        assert not MergeOutcome.IGNORED.changed


class TestHelpers:
    def test_duplicates_collapse_to_newest(self):
        collection = collection_from_songs([make_song(1, t=5, name="new"), make_song(1, t=1, name="old")])
        assert len(collection) == 1
        assert collection[1].name == "new"

    def test_latest_update_time(self):
        songs = [make_song(1, t=100), make_song(2, t=300), make_song(3, t=200)]
        assert latest_update_time(songs) == T0 + timedelta(seconds=300)

    def test_latest_update_time_empty(self):
        assert latest_update_time([]) is None
