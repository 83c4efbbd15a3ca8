"""
Web service client for song updates.

GET <base_url>?since=<timestamp> returns every song updated at or after the
cursor; without a cursor the full songbook is returned.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from urllib.parse import quote

import requests
from loguru import logger

from .codec import SongDataError, format_timestamp, songs_from_json
from .models import Song

DEFAULT_API_URL = "https://dev.acel.lu/api/v1/songs"
USER_AGENT = "lidderbuch-python/0.1"


class RemoteSourceError(RuntimeError):
    """Transport, HTTP or payload failure while fetching songs."""


class SongbookClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    def url_for(self, since: Optional[datetime] = None) -> str:
        if since is None:
            return self.base_url
        # percent-encode everything, '+' in the offset included
        return f"{self.base_url}?since={quote(format_timestamp(since), safe='')}"

    def fetch_songs(self, since: Optional[datetime] = None) -> list[Song]:
        """
        Fetch songs updated since ``since`` (all songs when ``None``).

        Raises:
            RemoteSourceError: the request failed or the body is not a song array.
        """
        url = self.url_for(since)
        logger.debug(f"Fetching songs from {url}")
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteSourceError(f"song request failed: {exc}") from exc

        try:
            songs = songs_from_json(r.content)
        except SongDataError as exc:
            raise RemoteSourceError(str(exc)) from exc

        logger.debug(f"Web service returned {len(songs)} songs")
        return songs
