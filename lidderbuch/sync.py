"""
Sync Controller — incremental songbook updates from the web service.

One run:
  1. cursor = newest ``update_time`` in the songbook (``None`` when empty)
  2. fetch songs updated since the cursor
  3. merge every song in the order received, keeping local bookmarks
  4. rebuild categories and notify observers once, only if something changed

Runs never overlap: they execute on a single dedicated worker thread, and
direct ``run()`` calls from other threads wait on the same lock.  A failed
fetch leaves the songbook untouched and is only logged.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Optional

from loguru import logger

from .models import SyncResult
from .remote import RemoteSourceError

if TYPE_CHECKING:
    from .remote import SongbookClient
    from .songbook import Songbook


def _log_failure(future: Future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.opt(exception=future.exception()).error("Songbook sync failed")


class SyncController:
    def __init__(self, songbook: "Songbook", source: "SongbookClient") -> None:
        self.songbook = songbook
        self.source = source
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lidderbuch-sync")
        self._run_lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def run_async(self) -> "Future[SyncResult]":
        """Queue a run on the sync worker.  Unexpected failures are logged."""
        future = self._executor.submit(self.run)
        future.add_done_callback(_log_failure)
        return future

    def schedule(self, delay: float) -> threading.Timer:
        """Queue a run on the sync worker after ``delay`` seconds."""
        self.cancel_scheduled()
        timer = threading.Timer(delay, self._submit_if_open)
        timer.daemon = True
        self._timer = timer
        timer.start()
        logger.debug(f"Songbook sync scheduled in {delay:.1f}s")
        return timer

    def cancel_scheduled(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _submit_if_open(self) -> None:
        with self._submit_lock:
            if not self._closed:
                self.run_async()

    def shutdown(self, wait: bool = True) -> None:
        with self._submit_lock:
            self._closed = True
            self.cancel_scheduled()
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> SyncResult:
        """Fetch, merge and publish one batch of updates."""
        with self._run_lock:
            since = self.songbook.update_time
            try:
                songs = self.source.fetch_songs(since)
            except RemoteSourceError as exc:
                logger.warning(f"Songbook sync skipped: {exc}")
                return SyncResult(since=since, failed=True, error=str(exc))

            result = self.songbook.merge_updates(songs)
            result.since = since

        if result.changed:
            logger.info(
                f"Songbook synced: {result.inserted} new, {result.replaced} updated, "
                f"{result.ignored} unchanged"
            )
        else:
            logger.debug(f"Songbook sync: nothing new ({result.fetched} fetched)")
        return result
