"""
Local song storage — one JSON file plus a read-only seed shipped with the
package.

Writes go to a ``.tmp`` sibling first and are renamed into place, so an
interrupted save never leaves a truncated songs file behind.  Neither reads
nor writes raise: failures are logged and reported as ``None`` / ``False``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger

SEED_PATH = Path(__file__).resolve().parent / "data" / "songs.json"


class SongStore:
    """Byte-blob load/save at one fixed location."""

    def __init__(self, path: Path, seed_path: Optional[Path] = SEED_PATH) -> None:
        self.path = Path(path)
        self.seed_path = Path(seed_path) if seed_path else None

    def load(self) -> Optional[bytes]:
        """Return the saved songs blob, or ``None`` if absent or unreadable."""
        return self._read(self.path)

    def load_seed(self) -> Optional[bytes]:
        """Return the bundled seed blob, or ``None``.  Never written to."""
        if self.seed_path is None:
            return None
        return self._read(self.seed_path)

    def save(self, blob: bytes) -> bool:
        """Atomically replace the songs file with ``blob``."""
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(blob)
            tmp.replace(self.path)
        except OSError as exc:
            logger.warning(f"Could not save songs to {self.path}: {exc}")
            return False
        logger.debug(f"Songs saved → {self.path} ({len(blob)} bytes)")
        return True

    @staticmethod
    def _read(path: Path) -> Optional[bytes]:
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning(f"Could not read {path}: {exc}")
            return None

    def __repr__(self) -> str:
        return f"SongStore(path={self.path}, seed={self.seed_path})"
