"""
Songbook settings, read from ``LIDDERBUCH_*`` environment variables.
"""

import os
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .remote import DEFAULT_API_URL
from .search import MIN_QUERY_LENGTH

_ENV_PREFIX = "LIDDERBUCH_"


class SongbookSettings(BaseModel):
    api_url: str = Field(DEFAULT_API_URL, description="Songs endpoint of the web service")
    data_dir: Path = Field(Path.home() / ".lidderbuch", description="Directory holding songs.json")
    sync_delay: float = Field(2.0, ge=0, description="Seconds between start-up and the first sync")
    timeout: float = Field(15.0, gt=0, description="HTTP timeout in seconds")
    min_query: int = Field(
        MIN_QUERY_LENGTH, ge=MIN_QUERY_LENGTH, description="Shortest searchable query, never below 3"
    )

    @property
    def songs_path(self) -> Path:
        return self.data_dir / "songs.json"

    @classmethod
    def from_env(cls) -> "SongbookSettings":
        """Settings from the environment; each invalid value falls back to its default."""
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if not raw:
                continue
            if name == "data_dir":
                raw = Path(raw).expanduser()
            try:
                cls(**{name: raw})
            except ValidationError as exc:
                logger.warning(f"Ignoring invalid {_ENV_PREFIX}{name.upper()}={raw!r}: {exc.errors()[0]['msg']}")
                continue
            values[name] = raw
        return cls(**values)
