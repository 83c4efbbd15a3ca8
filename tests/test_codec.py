"""Tests for songs JSON (de)serialization and the local song store."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from lidderbuch.codec import (
    SongDataError,
    format_timestamp,
    songs_from_json,
    songs_to_json,
)
from lidderbuch.models import Paragraph, Song
from lidderbuch.store import SEED_PATH, SongStore

CET = timezone(timedelta(hours=2))


def song_json(id, **overrides):
    data = {
        "id": id,
        "name": f"Song {id}",
        "category": "A",
        "position": id,
        "update_time": "2015-05-13T10:00:00+02:00",
    }
    data.update(overrides)
    return data


class TestTimestamps:
    def test_format_second_precision_with_offset(self):
        value = datetime(2015, 5, 13, 10, 4, 5, 123456, tzinfo=CET)
        assert format_timestamp(value) == "2015-05-13T10:04:05+02:00"

    def test_format_rejects_naive(self):
        with pytest.raises(ValueError):
            format_timestamp(datetime(2015, 5, 13))

    def test_z_suffix_accepted(self):
        songs = songs_from_json(json.dumps([song_json(1, update_time="2015-05-13T08:00:00Z")]))
        assert songs[0].update_time == datetime(2015, 5, 13, 10, tzinfo=CET)

    def test_naive_update_time_rejected(self):
        assert songs_from_json(json.dumps([song_json(1, update_time="2015-05-13T08:00:00")])) == []


class TestSongsFromJson:
    def test_parses_array(self):
        songs = songs_from_json(json.dumps([song_json(1), song_json(2)]))
        assert [s.id for s in songs] == [1, 2]
        assert songs[0].update_time == datetime(2015, 5, 13, 10, tzinfo=CET)
        assert songs[0].bookmarked is False

    def test_malformed_entries_dropped_individually(self):
        blob = json.dumps([
            song_json(1),
            {"id": 2},                                      # missing fields
            song_json(3, update_time="2015-05-13T10:00:00"),  # naive timestamp
            "not an object",
            song_json(4, paragraphs=[{"id": 1, "type": "chorus"}]),
            song_json(5),
        ])
        assert [s.id for s in songs_from_json(blob)] == [1, 5]

    @pytest.mark.parametrize("blob", [b"", b"{not json", b'{"id": 1}', b"\xff\xfe"])
    def test_invalid_blob_raises(self, blob):
        with pytest.raises(SongDataError):
            songs_from_json(blob)


class TestRoundTrip:
    def test_every_field_survives(self):
        song = Song(
            id=7,
            name="Ons Heemecht",
            language="lb",
            category="Nationallidder",
            position=3,
            number=1,
            way="Traditionell",
            year=1859,
            lyrics_author="Michel Lentz",
            music_author="Jean-Antoine Zinnen",
            url="https://example.org/songs/7",
            paragraphs=[Paragraph(id=1, type="refrain", content="Mir wëlle bleiwe\nwat mir sinn")],
            update_time=datetime(2015, 5, 13, 10, 0, 1, 500, tzinfo=CET),
            bookmarked=True,
        )
        assert songs_from_json(songs_to_json([song])) == [song]


class TestSongStore:
    def test_missing_file_loads_none(self, tmp_path):
        assert SongStore(tmp_path / "songs.json", seed_path=None).load() is None

    def test_save_then_load(self, tmp_path):
        store = SongStore(tmp_path / "nested" / "songs.json", seed_path=None)
        assert store.save(b"[]") is True
        assert store.load() == b"[]"
        assert not (tmp_path / "nested" / "songs.tmp").exists()

    def test_save_failure_is_reported_not_raised(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = SongStore(blocker / "songs.json", seed_path=None)
        assert store.save(b"[]") is False

    def test_bundled_seed_is_valid(self):
        store = SongStore(SEED_PATH.parent / "does-not-exist.json")
        songs = songs_from_json(store.load_seed())
        assert len(songs) >= 1
        assert not any(s.bookmarked for s in songs)
