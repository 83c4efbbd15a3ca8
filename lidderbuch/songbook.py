"""
Songbook — the collection of songs and everything derived from it.

Usage:
    book = Songbook.open()                 # load, index, sync in 2 seconds
    book.add_observer(lambda: redraw(book.categories))
    book.search("Feierwon", callback=show_results)
    book.did_enter_background()            # persist before suspension

State is published as an immutable ``SongbookSnapshot``.  Writers (sync,
``integrate``, ``set_bookmark``) build a new snapshot under a write lock and
swap it in; readers just take the current reference and never block.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Tuple

from loguru import logger

from .categories import CategoryIndex, CategoryKey, build_category_index, sort_by_position
from .codec import SongDataError, songs_from_json, songs_to_json
from .config import SongbookSettings
from .merge import collection_from_songs, integrate_song, latest_update_time
from .models import MergeOutcome, Song, SyncResult
from .remote import SongbookClient
from .search import Scorer, keyword_relevance, search_songs
from .store import SongStore
from .sync import SyncController

Observer = Callable[[], None]
Dispatch = Callable[[Callable[[], None]], None]
SearchCallback = Callable[[List[Song], str], None]


def _call_inline(fn: Callable[[], None]) -> None:
    fn()


@dataclass(frozen=True)
class SongbookSnapshot:
    collection: Mapping[int, Song] = field(default_factory=lambda: MappingProxyType({}))
    index: CategoryIndex = field(default_factory=CategoryIndex)
    update_time: Optional[datetime] = None

    @property
    def songs(self) -> Tuple[Song, ...]:
        """All songs by position."""
        return tuple(sort_by_position(self.collection.values()))


class Songbook:
    """
    Owns the song collection, its category index, the sync controller and
    the observers.

    ``dispatch`` delivers observer notifications and search callbacks on the
    primary context; a GUI host passes its main-thread scheduler.  By default
    they run on whichever thread produced them.
    """

    def __init__(
        self,
        store: SongStore,
        source: SongbookClient,
        settings: Optional[SongbookSettings] = None,
        scorer: Scorer = keyword_relevance,
        dispatch: Optional[Dispatch] = None,
    ) -> None:
        self.store = store
        self.settings = settings or SongbookSettings()
        self.scorer = scorer
        self._dispatch = dispatch or _call_inline
        self._observers: list[Observer] = []
        self._write_lock = threading.RLock()
        self._search_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="lidderbuch-search")
        self._snapshot = SongbookSnapshot()

        self.sync = SyncController(self, source)

        self._publish(collection_from_songs(self._load()), reindex=True)
        logger.info(f"Songbook loaded: {len(self._snapshot.collection)} songs")

    @classmethod
    def open(cls, settings: Optional[SongbookSettings] = None, **kwargs) -> "Songbook":
        """Build a songbook from settings and schedule the first sync."""
        settings = settings or SongbookSettings.from_env()
        book = cls(
            store=SongStore(settings.songs_path),
            source=SongbookClient(settings.api_url, timeout=settings.timeout),
            settings=settings,
            **kwargs,
        )
        book.start()
        return book

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _load(self) -> list[Song]:
        for label, read in (("songs file", self.store.load), ("bundled songs", self.store.load_seed)):
            blob = read()
            if blob is None:
                continue
            try:
                songs = songs_from_json(blob)
            except SongDataError as exc:
                logger.warning(f"Could not read {label}: {exc}")
                continue
            logger.debug(f"Loaded {len(songs)} songs from {label}")
            return songs
        return []

    def start(self, delay: Optional[float] = None) -> None:
        """Schedule the first sync on the background worker."""
        self.sync.schedule(self.settings.sync_delay if delay is None else delay)

    def save(self) -> bool:
        """Write the current collection to the store.  Failures are logged only."""
        blob = songs_to_json(self._snapshot.collection.values())
        return self.store.save(blob)

    def did_enter_background(self) -> None:
        """Lifecycle signal: the host is about to be suspended."""
        self.save()

    def close(self) -> None:
        """Stop background work and persist."""
        self.sync.shutdown(wait=True)
        self._search_executor.shutdown(wait=True)
        self.save()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SongbookSnapshot:
        return self._snapshot

    @property
    def songs(self) -> Tuple[Song, ...]:
        return self._snapshot.songs

    @property
    def categories(self) -> Tuple[CategoryKey, ...]:
        return self._snapshot.index.categories

    def category_songs(self, category: CategoryKey) -> Tuple[Song, ...]:
        return self._snapshot.index.songs(category)

    def song(self, song_id: int) -> Optional[Song]:
        return self._snapshot.collection.get(song_id)

    @property
    def update_time(self) -> Optional[datetime]:
        """Newest ``update_time`` in the collection, used as the sync cursor."""
        return self._snapshot.update_time

    def __len__(self) -> int:
        return len(self._snapshot.collection)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def _notify(self) -> None:
        for observer in list(self._observers):
            self._dispatch(lambda observer=observer: self._deliver(observer))

    @staticmethod
    def _deliver(observer: Observer) -> None:
        try:
            observer()
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"Songbook observer {observer!r} failed: {exc}")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _publish(self, collection: dict, reindex: bool) -> None:
        index = build_category_index(collection.values()) if reindex else self._snapshot.index
        self._snapshot = SongbookSnapshot(
            collection=MappingProxyType(collection),
            index=index,
            update_time=latest_update_time(collection.values()),
        )

    def integrate(self, song: Song, preserve_bookmark: bool, propagate: bool = True) -> MergeOutcome:
        """
        Merge a single song.

        With ``propagate`` a change rebuilds the categories and notifies
        observers right away.  Without it only the collection is updated;
        call ``reindex()`` once the batch is complete.
        """
        with self._write_lock:
            collection = dict(self._snapshot.collection)
            outcome = integrate_song(collection, song, preserve_bookmark)
            if outcome.changed:
                self._publish(collection, reindex=propagate)

        if outcome.changed and propagate:
            self._notify()
        return outcome

    def reindex(self) -> None:
        """Rebuild the categories from the collection and notify observers."""
        with self._write_lock:
            self._publish(dict(self._snapshot.collection), reindex=True)
        self._notify()

    def merge_updates(self, songs: Iterable[Song]) -> SyncResult:
        """
        Merge a batch of remote songs, keeping local bookmarks.

        Categories are rebuilt and observers notified once for the whole
        batch, and only when at least one song was inserted or replaced.
        """
        result = SyncResult()
        with self._write_lock:
            collection = dict(self._snapshot.collection)
            for song in songs:
                result.fetched += 1
                result.count(integrate_song(collection, song, preserve_bookmark=True))
            if result.changed:
                self._publish(collection, reindex=True)

        if result.changed:
            self._notify()
        return result

    def set_bookmark(self, song_id: int, bookmarked: bool) -> Song:
        """
        Set the local bookmark flag of a song.

        Raises:
            KeyError: no song with ``song_id``.
        """
        with self._write_lock:
            current = self._snapshot.collection[song_id]
            if current.bookmarked == bookmarked:
                return current
            collection = dict(self._snapshot.collection)
            collection[song_id] = updated = current.with_bookmark(bookmarked)
            self._publish(collection, reindex=True)

        self._notify()
        return updated

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_now(self, query: str) -> List[Song]:
        """Search synchronously on the calling thread."""
        return search_songs(
            self._snapshot.songs,
            query,
            scorer=self.scorer,
            min_length=self.settings.min_query,
        )

    def search(self, query: str, callback: Optional[SearchCallback] = None) -> "Future[List[Song]]":
        """
        Search on a background worker.

        ``callback(results, query)`` is delivered through ``dispatch``; the
        query is passed back so callers can drop results of stale queries.
        """
        if len(query.strip()) < self.settings.min_query:
            future: Future = Future()
            future.set_result([])
        else:
            future = self._search_executor.submit(self.search_now, query)

        if callback is not None:
            def _done(f: Future) -> None:
                if f.exception() is not None:
                    logger.warning(f"Search for {query!r} failed: {f.exception()}")
                    return
                results = f.result()
                self._dispatch(lambda: callback(results, query))

            future.add_done_callback(_done)
        return future

    def __repr__(self) -> str:
        return f"Songbook({len(self)} songs, {len(self.categories) - 1} categories)"
